# ==============================================
# LifecycleOrchestrator: Maker-Checker Lifecycle
# ==============================================
#
# PURPOSE:
#   This is the MAIN CLASS that ties the framework together. Callers
#   (the CLI, or any transport) interact with this class only.
#   Everything else is internal.
#
# HOW IT CONNECTS THE PIECES:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                  LifecycleOrchestrator                   │
#   │                                                          │
#   │  MetadataStore.schema(entity_name) → Entity              │
#   │                 │                                        │
#   │                 ▼                                        │
#   │  FieldValidator.validate(entity, payload)                │
#   │                 │ errors? → VALIDATION_FAILED            │
#   │                 ▼                                        │
#   │  decompose(entity, payload) → CompositeRecord            │
#   │                 │                                        │
#   │                 ▼                                        │
#   │  with TransactionalStore.transaction() as tx:            │
#   │      existence checks, then writes across                │
#   │      staging / authoritative / history                   │
#   │                 │                                        │
#   │                 ▼                                        │
#   │           OperationResult                                │
#   └──────────────────────────────────────────────────────────┘
#
#
# RELATIONS TOUCHED PER OPERATION:
#
#   operation          staging        authoritative     history
#   ---------          -------        -------------     -------
#   submit             insert         read              -
#   approve ADD        delete         insert            append
#   approve UPDATE     delete         update            append
#   approve DELETE     delete         delete            append
#   reject             delete         -                 append
#   checker RECTIFY    update         -                 -
#   maker rectify      update         -                 -
#
# CLASS: LifecycleOrchestrator
# ----------------------------
#
#   Constructor:
#   ------------
#   - __init__(metadata, store, validator=None, clock=None)
#       clock() returns the timestamp stamped on every write.
#
#   Public Methods:
#   ---------------
#   - fetch_by_key(field_name, value, entity_name) -> OperationResult
#   - fetch_all(entity_name) -> OperationResult
#   - submit(record, entity_name, request_kind, actor) -> OperationResult
#   - decide(entity_name, action, key_fields, remarks, actor) -> OperationResult
#   - rectify(record, entity_name, actor) -> OperationResult
#
#   Every write is atomic across a parent and all of its children:
#   any failing step rolls the whole operation back.
#
# ==============================================

from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import structlog

from makerchecker.config import AppConfig, get_config
from makerchecker.errors import PartialCompositeFailure, PersistenceFailed
from makerchecker.metadata import MetadataStore
from makerchecker.model.columns import (
    ADDED_BY,
    ADDED_DATE_TIME,
    APPROVE_BY,
    APPROVE_DATE_TIME,
    BEAN_NAME_KEY,
    BEANS_KEY,
    RECTIFY_REMARK,
    REJECT_REMARK,
    REQUEST,
    STATUS,
    UPDATED_BY,
    UPDATED_DATE_TIME,
    RelationKind,
)
from makerchecker.model.decomposer import DecompositionError, compose, decompose
from makerchecker.model.entity import Entity
from makerchecker.model.record import Action, Actor, Record, RecordStatus, RequestKind
from makerchecker.model.results import OperationResult, ResultStatus
from makerchecker.storage import MySQLClient, StatementBuilder, StoreOutcome, TransactionalStore, UnitOfWork
from makerchecker.validation import FieldValidator, TypeDetector

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


class LifecycleOrchestrator:
    """
    Read, submit, decide and rectify records of metadata-declared
    entities through the staging → authoritative → history lifecycle.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        store: TransactionalStore,
        validator: Optional[FieldValidator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._metadata = metadata
        self._store = store
        self._validator = validator or FieldValidator()
        self._clock = clock or _now

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None) -> "LifecycleOrchestrator":
        """
        Wire the default components from configuration.

        Args:
            config: Application configuration. If None, loads from environment.
        """
        config = config or get_config()
        client = MySQLClient.from_config(config.mysql)
        builder = StatementBuilder(config.relations, placeholder=client.placeholder)
        return cls(
            metadata=MetadataStore(config.metadata_dir),
            store=TransactionalStore(client, builder),
        )

    @property
    def metadata(self) -> MetadataStore:
        return self._metadata

    @property
    def store(self) -> TransactionalStore:
        return self._store

    # ==============================================
    # Reads
    # ==============================================

    def fetch_by_key(self, field_name: str, value: Any, entity_name: str) -> OperationResult:
        """
        Read authoritative rows by one primary key field.

        Args:
            field_name: Must be a primary key field of the entity
            value: Value to match
            entity_name: Module name

        Returns:
            SUCCESS with rows (beans attached), NOT_PRIMARY_KEY_FIELD,
            DATA_NOT_AVAILABLE or PERSISTENCE_FAILED
        """
        entity = self._metadata.schema(entity_name)
        if field_name not in entity.primary_field_names:
            return OperationResult.of(
                ResultStatus.NOT_PRIMARY_KEY_FIELD,
                f"{field_name} is not a primary key field of {entity_name}",
            )

        key = self._coerce_key(entity, {field_name: value})
        try:
            with self._store.transaction() as tx:
                rows = self._read(tx, entity, RelationKind.AUTHORITATIVE, key)
                rows = [self._with_beans(tx, entity, row) for row in rows]
        except PersistenceFailed as e:
            return self._failed("fetch_by_key", entity_name, e)

        if not rows:
            return OperationResult.of(ResultStatus.DATA_NOT_AVAILABLE)
        return OperationResult(status=ResultStatus.SUCCESS, rows=rows)

    def fetch_all(self, entity_name: str) -> OperationResult:
        """Every authoritative row of an entity, with beans attached."""
        entity = self._metadata.schema(entity_name)
        try:
            with self._store.transaction() as tx:
                outcome = self._checked(tx.read_all(entity), entity)
                rows = [self._with_beans(tx, entity, row) for row in outcome.rows]
        except PersistenceFailed as e:
            return self._failed("fetch_all", entity_name, e)

        if not rows:
            return OperationResult.of(ResultStatus.DATA_NOT_AVAILABLE)
        return OperationResult(status=ResultStatus.SUCCESS, rows=rows)

    def _with_beans(self, tx: UnitOfWork, entity: Entity, row: Dict[str, Any]) -> Dict[str, Any]:
        if not entity.beans:
            return row
        children = {}
        for bean in entity.beans:
            key = {
                name: row[name] for name in bean.primary_field_names
                if row.get(name) is not None
            }
            children[bean.entity_name] = self._read(tx, bean, RelationKind.AUTHORITATIVE, key) if key else []
        return compose(row, children)

    # ==============================================
    # Maker: submit
    # ==============================================

    def submit(self, record: Mapping[str, Any], entity_name: str, request_kind, actor: Actor) -> OperationResult:
        """
        Stage an ADD, UPDATE or DELETE request for checker approval.

        Preconditions are checked for the parent first, then for every
        child by its own primary key:
            1. staging row exists                  → APPROVAL_PENDING
            2. ADD and authoritative row exists    → DATA_ALREADY_PRESENT
            3. UPDATE/DELETE and no authoritative  → DATA_NOT_PRESENT

        Args:
            record: Payload, children under "beans"
            entity_name: Module name
            request_kind: RequestKind (or its name)
            actor: The maker

        Returns:
            SUCCESS, VALIDATION_FAILED (errors), one of the precondition
            statuses above, or PERSISTENCE_FAILED
        """
        entity = self._metadata.schema(entity_name)
        request_kind = RequestKind.parse(request_kind)
        log = logger.bind(entity=entity_name, request=request_kind.value, actor=actor.user_id)

        errors = self._validator.validate(entity, record)
        if errors:
            log.info("submit_validation_failed", errors=len(errors))
            return OperationResult.validation_failed(errors)

        records = [self._typed(rec) for rec in decompose(entity, record)]
        now = self._clock()

        try:
            with self._store.transaction() as tx:
                authoritative_rows = []
                for rec in records:
                    refused, authoritative = self._check_submittable(tx, rec, request_kind)
                    if refused is not None:
                        log.info("submit_refused", status=refused.value, target=rec.entity.entity_name, key=rec.key())
                        return OperationResult.of(refused)
                    authoritative_rows.append(authoritative)

                for rec, authoritative in zip(records, authoritative_rows):
                    values = self._staged_values(rec, request_kind, authoritative, actor, now)
                    outcome = tx.insert_staging(rec.entity, values, request_kind)
                    if outcome.conflict:
                        # Another maker staged the same key first; the unit rolls back
                        log.info("submit_conflict", target=rec.entity.entity_name, key=rec.key())
                        return OperationResult.of(ResultStatus.APPROVAL_PENDING)
                    self._checked(outcome, rec.entity, child=rec.entity.is_sub_bean)
        except PersistenceFailed as e:
            return self._failed("submit", entity_name, e)

        log.info("submit_staged", key=records[0].key(), children=len(records) - 1)
        return OperationResult.of(ResultStatus.SUCCESS)

    def _check_submittable(
        self, tx: UnitOfWork, rec: Record, request_kind: RequestKind
    ) -> Tuple[Optional[ResultStatus], Optional[Dict[str, Any]]]:
        key = rec.key()
        if self._read(tx, rec.entity, RelationKind.STAGING, key):
            return ResultStatus.APPROVAL_PENDING, None

        found = self._read(tx, rec.entity, RelationKind.AUTHORITATIVE, key)
        if request_kind is RequestKind.ADD and found:
            return ResultStatus.DATA_ALREADY_PRESENT, None
        if request_kind is not RequestKind.ADD and not found:
            return ResultStatus.DATA_NOT_PRESENT, None
        return None, (found[0] if found else None)

    def _staged_values(
        self,
        rec: Record,
        request_kind: RequestKind,
        authoritative: Optional[Dict[str, Any]],
        actor: Actor,
        now: datetime,
    ) -> Dict[str, Any]:
        values = rec.declared_values()
        if request_kind is RequestKind.ADD:
            values[ADDED_BY] = actor.user_id
            values[ADDED_DATE_TIME] = now
            return values

        if request_kind is RequestKind.DELETE:
            # Fields the delete request leaves out keep their current values
            current = {name: authoritative.get(name) for name in rec.entity.field_names}
            current.update({k: v for k, v in values.items() if v is not None})
            values = current

        values[ADDED_BY] = authoritative.get(ADDED_BY)
        values[ADDED_DATE_TIME] = authoritative.get(ADDED_DATE_TIME)
        values[UPDATED_BY] = actor.user_id
        values[UPDATED_DATE_TIME] = now
        return values

    # ==============================================
    # Checker: approve / reject / rectify
    # ==============================================

    def decide(
        self,
        entity_name: str,
        action,
        key_fields: Mapping[str, Any],
        remarks: Optional[str],
        actor: Actor,
    ) -> OperationResult:
        """
        Apply a checker decision to the staged request of one key.

        The staged parent row and the staged rows of every bean that
        share the key fields are transitioned inside one transaction.

        Args:
            entity_name: Module name
            action: APPROVE, REJECT or RECTIFY (or its name)
            key_fields: Primary key field -> value of the parent
            remarks: Reject or rectify remark
            actor: The checker

        Returns:
            ACTION_SUCCESSFUL, NO_REQUEST_PENDING, NOT_PRIMARY_KEY_FIELD
            or ACTION_FAILED
        """
        entity = self._metadata.schema(entity_name)
        action = Action.parse(action)
        log = logger.bind(entity=entity_name, action=action.value, actor=actor.user_id)

        not_key = [name for name in key_fields if name not in entity.primary_field_names]
        key = self._coerce_key(entity, {k: v for k, v in key_fields.items() if v is not None})
        if not_key or not key:
            return OperationResult.of(
                ResultStatus.NOT_PRIMARY_KEY_FIELD,
                f"Decisions are keyed by the primary key of {entity_name}: {entity.primary_field_names}",
            )

        now = self._clock()
        try:
            with self._store.transaction() as tx:
                staged = [(entity, row) for row in self._read(tx, entity, RelationKind.STAGING, key)]
                for bean in entity.beans:
                    if not any(name in bean.primary_field_names for name in key):
                        continue
                    staged.extend((bean, row) for row in self._read(tx, bean, RelationKind.STAGING, key))

                if not staged:
                    log.info("decide_nothing_pending", key=key)
                    return OperationResult.of(ResultStatus.NO_REQUEST_PENDING)

                for target, row in staged:
                    self._transition(tx, target, row, action, remarks, actor, now)
        except PersistenceFailed as e:
            return self._failed("decide", entity_name, e, ResultStatus.ACTION_FAILED)

        log.info("decide_applied", key=key, rows=len(staged))
        return OperationResult.of(ResultStatus.ACTION_SUCCESSFUL)

    def _transition(
        self,
        tx: UnitOfWork,
        entity: Entity,
        row: Dict[str, Any],
        action: Action,
        remarks: Optional[str],
        actor: Actor,
        now: datetime,
    ) -> None:
        child = entity.is_sub_bean

        if action is Action.RECTIFY:
            bookkeeping = {STATUS: RecordStatus.RECTIFY.value, RECTIFY_REMARK: remarks}
            self._checked(tx.update_bookkeeping(entity, RelationKind.STAGING, row, bookkeeping), entity, child)
            return

        try:
            request_kind = RequestKind.parse(row.get(REQUEST))
        except ValueError as e:
            reason = f"staged row carries no usable request: {e}"
            if child:
                raise PartialCompositeFailure(entity.entity_name, reason) from e
            raise PersistenceFailed(f"{entity.entity_name}: {reason}") from e

        stamp = {APPROVE_BY: actor.user_id, APPROVE_DATE_TIME: now}

        if action is Action.APPROVE:
            if request_kind is RequestKind.ADD:
                outcome = tx.insert_authoritative(entity, {**row, **stamp})
            elif request_kind is RequestKind.DELETE:
                outcome = tx.delete(entity, RelationKind.AUTHORITATIVE, row)
            else:
                bookkeeping = {UPDATED_BY: row.get(UPDATED_BY), UPDATED_DATE_TIME: row.get(UPDATED_DATE_TIME), **stamp}
                outcome = tx.update(entity, RelationKind.AUTHORITATIVE, row, bookkeeping)
            self._checked(outcome, entity, child)
            history = {**row, **stamp}
            status = RecordStatus.APPROVE
        else:
            history = {**row, **stamp, REJECT_REMARK: remarks}
            status = RecordStatus.REJECT

        self._checked(tx.delete(entity, RelationKind.STAGING, row), entity, child)
        self._checked(tx.insert_history(entity, history, request_kind, status), entity, child)

    # ==============================================
    # Maker: rectify
    # ==============================================

    def rectify(self, record: Mapping[str, Any], entity_name: str, actor: Actor) -> OperationResult:
        """
        Correct a staged request that the checker sent back.

        The payload is merged over the staged values (parent, and each
        child by its own key) and the merged record is validated again.
        Only staging is written: new values, STATUS back to PENDING,
        remark cleared. Authoritative and history are untouched.

        Returns:
            RECTIFICATION_SUCCESSFUL, NO_REQUEST_PENDING,
            VALIDATION_FAILED or PERSISTENCE_FAILED
        """
        entity = self._metadata.schema(entity_name)
        log = logger.bind(entity=entity_name, actor=actor.user_id)

        try:
            composite = decompose(entity, record)
        except DecompositionError as e:
            return OperationResult.validation_failed({BEANS_KEY: str(e)})

        key = self._coerce_key(entity, composite.parent.key())
        missing = [name for name in entity.primary_field_names if name not in key]
        if missing:
            return OperationResult.validation_failed(
                {name: f"{name} is a primary key and is required" for name in missing}
            )

        now = self._clock()
        try:
            with self._store.transaction() as tx:
                staged = self._read(tx, entity, RelationKind.STAGING, key)
                if not staged:
                    return OperationResult.of(ResultStatus.NO_REQUEST_PENDING)
                if staged[0].get(STATUS) != RecordStatus.RECTIFY.value:
                    return OperationResult.of(ResultStatus.NO_REQUEST_PENDING, "No rectification requested")

                parent = self._merge(staged[0], composite.parent)
                children = []
                for child in composite.children:
                    bean = child.entity
                    if len(child.key()) < len(bean.primary_field_names):
                        raise PartialCompositeFailure(bean.entity_name, "child record does not carry its full key")
                    found = self._read(tx, bean, RelationKind.STAGING, child.key())
                    if not found:
                        raise PartialCompositeFailure(bean.entity_name, f"no staged row for {child.key()}")
                    children.append(self._merge(found[0], child))

                errors = self._validator.validate(entity, self._as_payload(parent, children))
                if errors:
                    log.info("rectify_validation_failed", key=key, errors=len(errors))
                    return OperationResult.validation_failed(errors)
                parent = self._typed(parent)
                children = [self._typed(c) for c in children]

                reset = {
                    UPDATED_BY: actor.user_id,
                    UPDATED_DATE_TIME: now,
                    STATUS: RecordStatus.PENDING.value,
                    RECTIFY_REMARK: None,
                }
                self._checked(tx.update(entity, RelationKind.STAGING, parent.values, reset), entity)

                updated = {(c.entity.entity_name, tuple(sorted(c.key().items()))) for c in children}
                for c in children:
                    self._checked(tx.update(c.entity, RelationKind.STAGING, c.values, reset), c.entity, child=True)

                # Children the payload left alone still go back to PENDING
                for bean in entity.beans:
                    if not any(name in bean.primary_field_names for name in key):
                        continue
                    for row in self._read(tx, bean, RelationKind.STAGING, key):
                        row_key = Record(bean, row).key()
                        if (bean.entity_name, tuple(sorted(row_key.items()))) in updated:
                            continue
                        self._checked(
                            tx.update_bookkeeping(bean, RelationKind.STAGING, row, reset), bean, child=True
                        )
        except PersistenceFailed as e:
            return self._failed("rectify", entity_name, e)

        log.info("rectify_applied", key=key, children=len(composite.children))
        return OperationResult.of(ResultStatus.RECTIFICATION_SUCCESSFUL)

    @staticmethod
    def _merge(staged_row: Dict[str, Any], incoming: Record) -> Record:
        staged = Record(incoming.entity, Record(incoming.entity, staged_row).declared_values())
        return staged.merged(incoming.values)

    @staticmethod
    def _as_payload(parent: Record, children: List[Record]) -> Dict[str, Any]:
        payload = dict(parent.values)
        if children:
            payload[BEANS_KEY] = [
                {**c.values, BEAN_NAME_KEY: c.entity.entity_name} for c in children
            ]
        return payload

    # ==============================================
    # Helpers
    # ==============================================

    def _read(self, tx: UnitOfWork, entity: Entity, relation: RelationKind, key: Mapping[str, Any]) -> List[Dict[str, Any]]:
        return self._checked(tx.read(entity, relation, key), entity).rows

    @staticmethod
    def _checked(outcome: StoreOutcome, entity: Entity, child: bool = False) -> StoreOutcome:
        """Turn a failed outcome into the exception that aborts the unit of work."""
        if outcome.ok:
            return outcome
        if child:
            raise PartialCompositeFailure(entity.entity_name, outcome.reason)
        raise PersistenceFailed(f"{entity.entity_name}: {outcome.reason}")

    @staticmethod
    def _coerce_key(entity: Entity, key: Mapping[str, Any]) -> Dict[str, Any]:
        coerced = {}
        for name, value in key.items():
            field = entity.get_field(name)
            if field is not None:
                value, _ = TypeDetector.coerce(value, field.data_type)
            coerced[name] = value
        return coerced

    @staticmethod
    def _typed(rec: Record) -> Record:
        """Declared values converted to the data type of their field."""
        values = dict(rec.values)
        for field in rec.entity.fields:
            if field.name in values:
                values[field.name], _ = TypeDetector.coerce(values[field.name], field.data_type)
        return Record(rec.entity, values)

    @staticmethod
    def _failed(
        operation: str,
        entity_name: str,
        error: PersistenceFailed,
        status: ResultStatus = ResultStatus.PERSISTENCE_FAILED,
    ) -> OperationResult:
        logger.error("operation_failed", operation=operation, entity=entity_name, error=str(error))
        return OperationResult.of(status, str(error))
