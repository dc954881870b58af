# ==============================================
# STORAGE (Statements + transactions)
# ==============================================
#
# This package handles all database operations:
# building parameterized statements from metadata, connecting,
# creating relations, and running statements inside transactions.
#
# Modules:
# --------
# - statement_builder.py    → Metadata + record → parameterized Statement
# - mysql_client.py         → Connection management (pymysql or injected)
# - transactional_store.py  → One all-or-nothing unit of work per operation
#
# ==============================================

from .mysql_client import MySQLClient
from .statement_builder import Statement, StatementBuilder
from .transactional_store import StoreOutcome, TransactionalStore, UnitOfWork

__all__ = [
    "MySQLClient",
    "Statement",
    "StatementBuilder",
    "StoreOutcome",
    "TransactionalStore",
    "UnitOfWork",
]
