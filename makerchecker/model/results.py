# ==============================================
# Operation Results
# ==============================================
#
# Every top-level lifecycle operation returns an OperationResult
# instead of raising. Callers branch on ``status``; ``message`` is the
# human-readable text, ``errors`` holds field-level validation errors,
# ``rows`` holds read results.
#
# "Nothing to do" (NO_REQUEST_PENDING) is a different status from
# "operation failed" (ACTION_FAILED / PERSISTENCE_FAILED).
# ==============================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ResultStatus(Enum):
    SUCCESS = "SUCCESS"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_PRIMARY_KEY_FIELD = "NOT_PRIMARY_KEY_FIELD"
    DATA_NOT_AVAILABLE = "DATA_NOT_AVAILABLE"
    APPROVAL_PENDING = "APPROVAL_PENDING"
    DATA_ALREADY_PRESENT = "DATA_ALREADY_PRESENT"
    DATA_NOT_PRESENT = "DATA_NOT_PRESENT"
    NO_REQUEST_PENDING = "NO_REQUEST_PENDING"
    ACTION_SUCCESSFUL = "ACTION_SUCCESSFUL"
    ACTION_FAILED = "ACTION_FAILED"
    RECTIFICATION_SUCCESSFUL = "RECTIFICATION_SUCCESSFUL"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"


SUCCESS_STATUSES = {
    ResultStatus.SUCCESS,
    ResultStatus.ACTION_SUCCESSFUL,
    ResultStatus.RECTIFICATION_SUCCESSFUL,
}

DEFAULT_MESSAGES = {
    ResultStatus.SUCCESS: "Request processed successfully",
    ResultStatus.VALIDATION_FAILED: "Validation failed",
    ResultStatus.NOT_PRIMARY_KEY_FIELD: "Field is not a primary key",
    ResultStatus.DATA_NOT_AVAILABLE: "Data not available",
    ResultStatus.APPROVAL_PENDING: "Approval already pending for this record",
    ResultStatus.DATA_ALREADY_PRESENT: "Data already present",
    ResultStatus.DATA_NOT_PRESENT: "Data not present",
    ResultStatus.NO_REQUEST_PENDING: "No request pending",
    ResultStatus.ACTION_SUCCESSFUL: "Action successful",
    ResultStatus.ACTION_FAILED: "Action failed",
    ResultStatus.RECTIFICATION_SUCCESSFUL: "Rectification successful",
    ResultStatus.PERSISTENCE_FAILED: "Persistence failed",
}


@dataclass
class OperationResult:
    """Outcome of one lifecycle operation."""

    status: ResultStatus
    message: str = ""
    errors: Dict[str, str] = field(default_factory=dict)
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        if not self.message:
            self.message = DEFAULT_MESSAGES[self.status]

    @property
    def ok(self) -> bool:
        return self.status in SUCCESS_STATUSES

    @classmethod
    def of(cls, status: ResultStatus, message: Optional[str] = None) -> "OperationResult":
        return cls(status=status, message=message or "")

    @classmethod
    def validation_failed(cls, errors: Dict[str, str]) -> "OperationResult":
        return cls(status=ResultStatus.VALIDATION_FAILED, errors=dict(errors))

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize for a transport layer.

        Validation failures return the field -> message mapping verbatim.
        """
        if self.status is ResultStatus.VALIDATION_FAILED:
            return dict(self.errors)
        data: Dict[str, Any] = {"status": self.status.value, "message": self.message}
        if self.rows:
            data["rows"] = self.rows
        return data
