# ==============================================
# Record (Data Classes)
# ==============================================
#
# PURPOSE:
#   The unit exchanged between every layer. A Record is a mapping of
#   field name -> value that is BOUND to the Entity that declares it,
#   so a key lookup always goes through metadata instead of guessing.
#
# ENUMS:
# ------
# - RequestKind: ADD, UPDATE, DELETE       → nature of a submitted change
# - RecordStatus: PENDING, RECTIFY,
#                 APPROVE, REJECT          → STATUS column values
# - Action: APPROVE, REJECT, RECTIFY       → checker decisions
#
# CLASSES:
# --------
# - Actor (dataclass)         → identity stamped on every write
# - Record (dataclass)        → entity + values
# - CompositeRecord           → parent Record + ordered child Records
#
# ==============================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List

from makerchecker.model.entity import Entity


class RequestKind(Enum):
    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: Any) -> "RequestKind":
        """Accept an enum member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown request kind: {value!r}") from None


class RecordStatus(Enum):
    PENDING = "PENDING"
    RECTIFY = "RECTIFY"
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class Action(Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    RECTIFY = "RECTIFY"

    @classmethod
    def parse(cls, value: Any) -> "Action":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown action: {value!r}") from None


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation (maker or checker)."""
    user_id: str

    def __post_init__(self):
        if not self.user_id or not str(self.user_id).strip():
            raise ValueError("Actor user_id must not be empty")

    def __str__(self) -> str:
        return self.user_id


@dataclass
class Record:
    """
    Values of one row, bound to the entity that declares them.

    ``values`` may also carry bookkeeping columns (REQUEST, STATUS, ...)
    when the record was read back from a relation.
    """

    entity: Entity
    values: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def key(self) -> Dict[str, Any]:
        """Primary key fields present (and not None) in this record."""
        return {
            name: self.values[name]
            for name in self.entity.primary_field_names
            if self.values.get(name) is not None
        }

    def declared_values(self) -> Dict[str, Any]:
        """Only the values of declared fields, in declaration order."""
        return {name: self.values.get(name) for name in self.entity.field_names}

    def merged(self, overrides: Dict[str, Any]) -> "Record":
        """Copy of this record with ``overrides`` applied on top."""
        values = dict(self.values)
        values.update(overrides)
        return Record(self.entity, values)


@dataclass
class CompositeRecord:
    """A parent record together with the child records of its beans."""

    parent: Record
    children: List[Record] = field(default_factory=list)

    def __iter__(self) -> Iterator[Record]:
        # Parent first, then children in submission order
        yield self.parent
        yield from self.children

