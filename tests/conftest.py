# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests.
#
# The store runs against an in-memory sqlite3 connection injected into
# MySQLClient, so no MySQL server is needed. sqlite accepts the same
# backtick-quoted identifiers and column types the builder emits.
# ==============================================

import sqlite3
from datetime import datetime

import pytest

from makerchecker.config import RelationConfig
from makerchecker.lifecycle import LifecycleOrchestrator
from makerchecker.metadata import MetadataStore
from makerchecker.model import Actor, Entity, EntityKind, Field
from makerchecker.storage import MySQLClient, StatementBuilder, TransactionalStore

FIXED_NOW = datetime(2024, 5, 1, 10, 30, 0)
FIXED_NOW_TEXT = "2024-05-01 10:30:00"


@pytest.fixture
def address_schema() -> Entity:
    return Entity(
        entity_name="ADDRESS",
        kind=EntityKind.BEAN,
        fields=[
            Field("EMP_ID", primary_key=True, data_type="int"),
            Field("ADDRESS_ID", primary_key=True, data_type="int"),
            Field("CITY", data_type="str", nullable=False, max_length=60),
            Field("PIN", data_type="str", max_length=10),
        ],
    )


@pytest.fixture
def employee_schema(address_schema) -> Entity:
    """Module with one bean."""
    return Entity(
        entity_name="EMPLOYEE",
        fields=[
            Field("EMP_ID", primary_key=True, data_type="int"),
            Field("NAME", data_type="str", nullable=False, max_length=100),
            Field("DEPARTMENT", data_type="str", max_length=50),
            Field("SALARY", data_type="float"),
        ],
        beans=[address_schema],
    )


@pytest.fixture
def branch_schema() -> Entity:
    """Module without beans."""
    return Entity(
        entity_name="BRANCH",
        fields=[
            Field("BRANCH_CODE", primary_key=True, data_type="str", max_length=10),
            Field("CITY", data_type="str"),
        ],
    )


@pytest.fixture
def metadata_store(tmp_path, employee_schema, branch_schema) -> MetadataStore:
    """Temporary metadata store holding EMPLOYEE and BRANCH."""
    store = MetadataStore(str(tmp_path / "metadata"))
    store.save_schema(employee_schema)
    store.save_schema(branch_schema)
    return store


@pytest.fixture
def sqlite_connection():
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def client(sqlite_connection) -> MySQLClient:
    return MySQLClient(connection=sqlite_connection, driver=sqlite3)


@pytest.fixture
def store(client, employee_schema, branch_schema) -> TransactionalStore:
    """Store with the relations of EMPLOYEE (and ADDRESS) and BRANCH created."""
    store = TransactionalStore(client, StatementBuilder(RelationConfig(), placeholder=client.placeholder))
    store.ensure_relations(employee_schema)
    store.ensure_relations(branch_schema)
    return store


@pytest.fixture
def orchestrator(metadata_store, store) -> LifecycleOrchestrator:
    return LifecycleOrchestrator(metadata_store, store, clock=lambda: FIXED_NOW)


@pytest.fixture
def maker() -> Actor:
    return Actor("alice")


@pytest.fixture
def checker() -> Actor:
    return Actor("bob")


@pytest.fixture
def table_rows(client):
    """Read every row of a relation straight from the database."""
    def _rows(table_name: str) -> list[dict]:
        return client.fetch_all(f"SELECT * FROM `{table_name}`")
    return _rows


@pytest.fixture
def employee_record() -> dict:
    return {"EMP_ID": 7, "NAME": "Asha Rao", "DEPARTMENT": "Finance", "SALARY": 52000.0}
