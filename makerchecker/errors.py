# ==============================================
# Errors
# ==============================================
#
# Exception hierarchy for the framework.
#
# - MakerCheckerError          → base class
#   ├── MetadataError          → unknown entity or malformed metadata
#   └── PersistenceFailed      → store I/O or constraint violation
#       ├── PartialCompositeFailure → a child step failed inside a composite op
#       └── StoreUnavailable   → connectivity / resource fault from the driver
#
# Only MetadataError escapes the orchestrator. Every PersistenceFailed is
# caught at the operation boundary and turned into a failure result.
# ==============================================


class MakerCheckerError(Exception):
    """Base class for all framework errors."""


class MetadataError(MakerCheckerError):
    """Entity metadata is missing or malformed."""


class PersistenceFailed(MakerCheckerError):
    """A persistence step failed and the transaction was rolled back."""


class PartialCompositeFailure(PersistenceFailed):
    """A child row of a composite operation could not be persisted."""

    def __init__(self, entity_name: str, reason: str):
        super().__init__(f"{entity_name}: {reason}")
        self.entity_name = entity_name
        self.reason = reason


class StoreUnavailable(PersistenceFailed):
    """The database could not be reached or refused the operation."""
