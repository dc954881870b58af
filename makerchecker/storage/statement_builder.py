# ==============================================
# StatementBuilder
# ==============================================
#
# PURPOSE:
#   Turn (entity metadata, record values, target relation) into a
#   parameterized Statement. Nothing here touches a connection.
#
# RULES:
# ------
#   - Identifiers come ONLY from metadata field names and the fixed
#     bookkeeping column set. Each one is checked against the
#     identifier pattern and quoted with backticks.
#   - Values are ONLY ever bound as parameters, never put in the text.
#   - Keys of the record that the relation does not declare are
#     ignored, so arbitrary payload keys never become identifiers.
#   - A statement that needs a WHERE over the primary key is refused
#     (None is returned) when no primary key value is present.
#
# CLASS: StatementBuilder
# -----------------------
#   Constructor:
#   ------------
#   - __init__(relations: RelationConfig, placeholder: str = "%s")
#       placeholder is "%s" for pymysql, "?" for sqlite3.
#
#   Methods:
#   --------
#   - select(entity, relation, values) -> Statement | None
#   - select_all(entity, relation) -> Statement
#   - insert_staging(entity, values, request_kind) -> Statement
#   - insert_authoritative(entity, values) -> Statement
#   - insert_history(entity, values, request_kind, status) -> Statement
#   - update(entity, relation, values, bookkeeping) -> Statement | None
#   - update_bookkeeping(entity, relation, values, bookkeeping) -> Statement | None
#   - delete(entity, relation, values) -> Statement | None
#   - create_table(entity, relation) -> Statement
#
# ==============================================

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from makerchecker.config import RelationConfig
from makerchecker.model.columns import (
    BOOKKEEPING_COLUMNS,
    BOOKKEEPING_TYPES,
    REQUEST,
    STATUS,
    RelationKind,
)
from makerchecker.model.entity import Entity, check_identifier
from makerchecker.model.record import RecordStatus, RequestKind


@dataclass(frozen=True)
class Statement:
    """Statement text plus the values bound to its placeholders."""
    sql: str
    params: Tuple[Any, ...] = ()


class StatementBuilder:
    def __init__(self, relations: Optional[RelationConfig] = None, placeholder: str = "%s"):
        self.relations = relations or RelationConfig()
        self.placeholder = placeholder

    # ---------- identifiers ----------

    @staticmethod
    def quote(name: str) -> str:
        return f"`{check_identifier(name, 'column name')}`"

    def table(self, entity: Entity, relation: RelationKind) -> str:
        return self.quote(self.relations.table_name(entity.entity_name, relation))

    def columns(self, entity: Entity, relation: RelationKind) -> List[str]:
        """Declared fields in order, then the relation's bookkeeping columns."""
        return entity.field_names + BOOKKEEPING_COLUMNS[relation]

    def _where(self, entity: Entity, values: Mapping[str, Any]) -> Optional[Tuple[str, List[Any]]]:
        # AND over the primary key fields that carry a value
        keys = [
            name for name in entity.primary_field_names
            if values.get(name) is not None
        ]
        if not keys:
            return None
        clause = " AND ".join(f"{self.quote(k)} = {self.placeholder}" for k in keys)
        return clause, [values[k] for k in keys]

    # ---------- reads ----------

    def select(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any]) -> Optional[Statement]:
        where = self._where(entity, values)
        if where is None:
            return None
        column_list = ", ".join(self.quote(c) for c in self.columns(entity, relation))
        clause, params = where
        return Statement(
            f"SELECT {column_list} FROM {self.table(entity, relation)} WHERE {clause}",
            tuple(params),
        )

    def select_all(self, entity: Entity, relation: RelationKind = RelationKind.AUTHORITATIVE) -> Statement:
        """Unrestricted read. Only used to list every authoritative row."""
        column_list = ", ".join(self.quote(c) for c in self.columns(entity, relation))
        return Statement(f"SELECT {column_list} FROM {self.table(entity, relation)}")

    # ---------- inserts ----------

    def _insert(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any],
                drop_nulls: bool = False) -> Statement:
        columns = [
            c for c in self.columns(entity, relation)
            if c in values and not (drop_nulls and values[c] is None)
        ]
        column_list = ", ".join(self.quote(c) for c in columns)
        placeholders = ", ".join([self.placeholder] * len(columns))
        return Statement(
            f"INSERT INTO {self.table(entity, relation)} ({column_list}) VALUES ({placeholders})",
            tuple(values[c] for c in columns),
        )

    def insert_staging(self, entity: Entity, values: Mapping[str, Any], request_kind: RequestKind) -> Statement:
        """Staged row: every declared field (null when absent), REQUEST and STATUS=PENDING."""
        row = {name: values.get(name) for name in entity.field_names}
        row.update({k: v for k, v in values.items() if k in BOOKKEEPING_COLUMNS[RelationKind.STAGING]})
        row[REQUEST] = request_kind.value
        row[STATUS] = RecordStatus.PENDING.value
        return self._insert(entity, RelationKind.STAGING, row)

    def insert_authoritative(self, entity: Entity, values: Mapping[str, Any]) -> Statement:
        row = {name: values.get(name) for name in entity.field_names}
        row.update({k: v for k, v in values.items() if k in BOOKKEEPING_COLUMNS[RelationKind.AUTHORITATIVE]})
        return self._insert(entity, RelationKind.AUTHORITATIVE, row)

    def insert_history(self, entity: Entity, values: Mapping[str, Any],
                       request_kind: RequestKind, status: RecordStatus) -> Statement:
        """History row: only non-null known columns, plus REQUEST and STATUS."""
        row = dict(values)
        row[REQUEST] = request_kind.value
        row[STATUS] = status.value
        return self._insert(entity, RelationKind.HISTORY, row, drop_nulls=True)

    # ---------- updates & deletes ----------

    def _set_clause(self, assignments: Mapping[str, Any]) -> Tuple[str, List[Any]]:
        clause = ", ".join(f"{self.quote(c)} = {self.placeholder}" for c in assignments)
        return clause, list(assignments.values())

    def _bookkeeping(self, relation: RelationKind, bookkeeping: Mapping[str, Any]) -> Dict[str, Any]:
        allowed = BOOKKEEPING_COLUMNS[relation]
        for column in bookkeeping:
            if column not in allowed:
                raise ValueError(f"{column} is not a bookkeeping column of the {relation.value} relation")
        return dict(bookkeeping)

    def update(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any],
               bookkeeping: Optional[Mapping[str, Any]] = None) -> Optional[Statement]:
        """
        Overwrite every non-key field (plus the given bookkeeping columns)
        of the row identified by the primary key values in ``values``.
        """
        where = self._where(entity, values)
        if where is None:
            return None
        assignments = {f.name: values.get(f.name) for f in entity.non_primary_fields}
        assignments.update(self._bookkeeping(relation, bookkeeping or {}))
        if not assignments:
            return None
        set_clause, set_params = self._set_clause(assignments)
        clause, params = where
        return Statement(
            f"UPDATE {self.table(entity, relation)} SET {set_clause} WHERE {clause}",
            tuple(set_params + params),
        )

    def update_bookkeeping(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any],
                           bookkeeping: Mapping[str, Any]) -> Optional[Statement]:
        """Touch only bookkeeping columns, e.g. to send a staged row back for rectification."""
        where = self._where(entity, values)
        if where is None or not bookkeeping:
            return None
        set_clause, set_params = self._set_clause(self._bookkeeping(relation, bookkeeping))
        clause, params = where
        return Statement(
            f"UPDATE {self.table(entity, relation)} SET {set_clause} WHERE {clause}",
            tuple(set_params + params),
        )

    def delete(self, entity: Entity, relation: RelationKind, values: Mapping[str, Any]) -> Optional[Statement]:
        where = self._where(entity, values)
        if where is None:
            return None
        clause, params = where
        return Statement(f"DELETE FROM {self.table(entity, relation)} WHERE {clause}", tuple(params))

    # ---------- DDL ----------

    def create_table(self, entity: Entity, relation: RelationKind) -> Statement:
        """
        CREATE TABLE IF NOT EXISTS for one relation of an entity.

        Staging and authoritative relations get a PRIMARY KEY over the
        entity's key fields. History is append-only and has none.
        """
        columns_def = []
        for f in entity.fields:
            nullable = "NULL" if f.nullable else "NOT NULL"
            columns_def.append(f"{self.quote(f.name)} {f.column_type} {nullable}")
        for column in BOOKKEEPING_COLUMNS[relation]:
            columns_def.append(f"{self.quote(column)} {BOOKKEEPING_TYPES[column]} NULL")
        if relation is not RelationKind.HISTORY:
            key_list = ", ".join(self.quote(k) for k in entity.primary_field_names)
            columns_def.append(f"PRIMARY KEY ({key_list})")
        return Statement(
            f"CREATE TABLE IF NOT EXISTS {self.table(entity, relation)} ({', '.join(columns_def)})"
        )
