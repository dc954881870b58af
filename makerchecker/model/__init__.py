# ==============================================
# MODEL (Entity metadata, records, results)
# ==============================================
#
# Modules:
# --------
# - entity.py   → Field, Entity, EntityKind (metadata-declared shape)
# - record.py   → Record, CompositeRecord, RequestKind, Action, Actor
# - columns.py  → RelationKind and the bookkeeping column names
# - results.py  → OperationResult, ResultStatus
#
# ==============================================

from .entity import Entity, EntityKind, Field
from .record import Action, Actor, CompositeRecord, Record, RecordStatus, RequestKind
from .columns import RelationKind
from .results import OperationResult, ResultStatus

__all__ = [
    "Action",
    "Actor",
    "CompositeRecord",
    "Entity",
    "EntityKind",
    "Field",
    "OperationResult",
    "Record",
    "RecordStatus",
    "RelationKind",
    "RequestKind",
    "ResultStatus",
]
