# ==============================================
# TransactionalStore
# ==============================================
#
# PURPOSE:
#   Execute built statements under ONE transaction per top-level
#   lifecycle operation, so that a parent row, its children and the
#   paired history rows are written all together or not at all.
#
# USAGE:
# ------
#   with store.transaction() as tx:
#       outcome = tx.insert_staging(entity, values, RequestKind.ADD)
#       if not outcome.ok:
#           ...
#
# OUTCOMES:
# ---------
#   Every unit-of-work call returns a StoreOutcome instead of raising:
#   - refused statement (no primary key value)  → ok=False
#   - zero rows affected by a write             → ok=False
#   - constraint violation (IntegrityError)     → ok=False, conflict=True
#   Any failed outcome marks the unit rollback-only.
#
#   Connectivity faults (OperationalError / InterfaceError) raise
#   StoreUnavailable and the whole unit rolls back.
#
# COMMIT RULE:
# ------------
#   On exit the unit commits only if no outcome failed and no exception
#   escaped the block. Otherwise everything is rolled back.
#
# ==============================================

import json
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

import structlog

from makerchecker.errors import StoreUnavailable
from makerchecker.model.columns import RelationKind
from makerchecker.model.entity import Entity
from makerchecker.model.record import RecordStatus, RequestKind

from .mysql_client import MySQLClient, rows_as_dicts
from .statement_builder import Statement, StatementBuilder

logger = structlog.get_logger(__name__)


@dataclass
class StoreOutcome:
    """Result of one statement inside a unit of work."""
    ok: bool
    rowcount: int = 0
    reason: str = ""
    conflict: bool = False
    rows: List[Dict[str, Any]] = field(default_factory=list)


def adapt_value(value: Any) -> Any:
    """Convert a Python value into something every driver can bind."""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return value


class UnitOfWork:
    """
    Statements executed on one cursor inside one open transaction.

    Created by TransactionalStore.transaction(); not meant to be built
    directly.
    """

    def __init__(self, client: MySQLClient, builder: StatementBuilder, cursor):
        self.client = client
        self.builder = builder
        self._cursor = cursor
        self.failures: List[str] = []

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    def _fail(self, reason: str, conflict: bool = False) -> StoreOutcome:
        self.failures.append(reason)
        logger.warning("store_statement_failed", reason=reason, conflict=conflict)
        return StoreOutcome(ok=False, reason=reason, conflict=conflict)

    def _run(self, statement: Optional[Statement], write: bool = True) -> StoreOutcome:
        if statement is None:
            return self._fail("statement refused: no primary key value")

        driver = self.client.driver
        params = tuple(adapt_value(p) for p in statement.params)
        logger.debug("store_execute", sql=statement.sql, params=len(params))
        try:
            self._cursor.execute(statement.sql, params)
        except driver.IntegrityError as e:
            return self._fail(f"constraint violation: {e}", conflict=True)
        except (driver.OperationalError, driver.InterfaceError) as e:
            raise StoreUnavailable(str(e)) from e
        except driver.DatabaseError as e:
            return self._fail(f"statement error: {e}")

        if not write:
            rows = rows_as_dicts(self._cursor)
            return StoreOutcome(ok=True, rowcount=len(rows), rows=rows)

        rowcount = self._cursor.rowcount
        if rowcount is not None and rowcount == 0:
            return self._fail("no rows affected")
        return StoreOutcome(ok=True, rowcount=rowcount or 0)

    # ---------- reads ----------

    def read(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any]) -> StoreOutcome:
        return self._run(self.builder.select(entity, relation, values), write=False)

    def read_all(self, entity: Entity, relation: RelationKind = RelationKind.AUTHORITATIVE) -> StoreOutcome:
        return self._run(self.builder.select_all(entity, relation), write=False)

    # ---------- writes ----------

    def insert_staging(self, entity: Entity, values: Mapping[str, Any], request_kind: RequestKind) -> StoreOutcome:
        return self._run(self.builder.insert_staging(entity, values, request_kind))

    def insert_authoritative(self, entity: Entity, values: Mapping[str, Any]) -> StoreOutcome:
        return self._run(self.builder.insert_authoritative(entity, values))

    def insert_history(self, entity: Entity, values: Mapping[str, Any],
                       request_kind: RequestKind, status: RecordStatus) -> StoreOutcome:
        return self._run(self.builder.insert_history(entity, values, request_kind, status))

    def update(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any],
               bookkeeping: Optional[Mapping[str, Any]] = None) -> StoreOutcome:
        return self._run(self.builder.update(entity, relation, values, bookkeeping))

    def update_bookkeeping(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any],
                           bookkeeping: Mapping[str, Any]) -> StoreOutcome:
        return self._run(self.builder.update_bookkeeping(entity, relation, values, bookkeeping))

    def delete(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any]) -> StoreOutcome:
        return self._run(self.builder.delete(entity, relation, values))


class TransactionalStore:
    """
    Hands out units of work on a single client connection.

    Transactions are serialized with a lock: a DB-API connection has
    one transaction open at a time.
    """

    def __init__(self, client: MySQLClient, builder: Optional[StatementBuilder] = None):
        self.client = client
        self.builder = builder or StatementBuilder(placeholder=client.placeholder)
        self._lock = threading.Lock()

    @contextmanager
    def transaction(self) -> Iterator[UnitOfWork]:
        with self._lock:
            if not self.client.connected:
                self.client.connect()
            connection = self.client.connection
            cursor = self.client.cursor()
            unit = UnitOfWork(self.client, self.builder, cursor)
            try:
                yield unit
            except BaseException:
                self._rollback(connection)
                raise
            else:
                if unit.failed:
                    logger.info("transaction_rolled_back", failures=unit.failures)
                    self._rollback(connection)
                else:
                    self._commit(connection)
            finally:
                cursor.close()

    def _commit(self, connection) -> None:
        try:
            connection.commit()
        except (self.client.driver.OperationalError, self.client.driver.InterfaceError) as e:
            raise StoreUnavailable(f"commit failed: {e}") from e

    def _rollback(self, connection) -> None:
        try:
            connection.rollback()
        except (self.client.driver.OperationalError, self.client.driver.InterfaceError) as e:
            logger.error("rollback_failed", error=str(e))

    def ensure_relations(self, entity: Entity) -> List[str]:
        """
        Create the staging, authoritative and history relations of an
        entity and of each of its beans, if they do not exist yet.

        Returns:
            Names of the relations ensured
        """
        ensured = []
        with self._lock:
            if not self.client.connected:
                self.client.connect()
            for target in [entity] + list(entity.beans):
                for relation in RelationKind:
                    self.client.execute(self.builder.create_table(target, relation).sql)
                    ensured.append(self.builder.relations.table_name(target.entity_name, relation))
        logger.info("relations_ensured", entity=entity.entity_name, relations=len(ensured))
        return ensured
