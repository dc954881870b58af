# ==============================================
# MySQLClient
# ==============================================
#
# PURPOSE:
#   Manages the database connection and the raw statement calls.
#   Everything above this class works with Statements and row dicts,
#   never with cursors.
#
# WHY THIS CLASS EXISTS:
#   Relations are created ON THE FLY from entity metadata, and the
#   store needs one place that knows which driver it is talking to:
#   the placeholder style and the exception classes both come from
#   the driver module.
#
# CLASS: MySQLClient
# ------------------
#   Stateful: holds the connection.
#
#   Constructor:
#   ------------
#   - __init__(host, port, user, password, database,
#              connection=None, driver=pymysql)
#       Store connection params. Don't connect yet.
#       Any DB-API 2.0 connection can be injected together with its
#       driver module (e.g. sqlite3 in tests).
#
#   Methods:
#   --------
#   - connect() -> None
#       Establish connection. Create database if it doesn't exist.
#
#   - disconnect() -> None
#       Close connection cleanly.
#
#   - placeholder -> str
#       "%s" or "?", from the driver's paramstyle.
#
#   - execute(query, params=None) -> None
#       Execute and commit a statement outside any unit of work (DDL).
#
#   - fetch_all(query, params=None) -> list[dict]
#       Execute SELECT and return rows as dicts.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MySQLClient(...) as db:` usage.
#
# ==============================================

from typing import Any, Optional, Sequence

import pymysql
import structlog
from pymysql.constants import CLIENT

from makerchecker.errors import StoreUnavailable

logger = structlog.get_logger(__name__)


def rows_as_dicts(cursor) -> list[dict]:
    """Map fetched tuples to dicts keyed by column name."""
    if cursor.description is None:
        return []
    names = [d[0] for d in cursor.description]
    return [dict(zip(names, row)) for row in cursor.fetchall()]


class MySQLClient:
    def __init__(self, host="localhost", port=3306, user="root", password="root",
                 database="maker_checker", connection=None, driver=pymysql):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = connection
        self.driver = driver
        # An injected connection belongs to the caller
        self._owns_connection = connection is None

    @classmethod
    def from_config(cls, mysql_config) -> "MySQLClient":
        return cls(
            host=mysql_config.host,
            port=mysql_config.port,
            user=mysql_config.user,
            password=mysql_config.password,
            database=mysql_config.database,
        )

    @property
    def placeholder(self) -> str:
        return "?" if self.driver.paramstyle == "qmark" else "%s"

    @property
    def connected(self) -> bool:
        return self.connection is not None

    def connect(self) -> None:
        # Establish connection to MySQL, create database if it doesn't exist
        if self.connection is not None:
            return
        try:
            self.connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                autocommit=False,
                # rowcount counts matched rows, not changed rows
                client_flag=CLIENT.FOUND_ROWS,
            )
            cursor = self.connection.cursor()
            cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{self.database}`")
            cursor.execute(f"USE `{self.database}`")
            cursor.close()
        except (pymysql.err.OperationalError, pymysql.err.InterfaceError) as e:
            self.connection = None
            raise StoreUnavailable(f"Cannot connect to MySQL at {self.host}:{self.port}: {e}") from e
        self._owns_connection = True
        logger.info("mysql_connected", host=self.host, port=self.port, database=self.database)

    def disconnect(self) -> None:
        # Close connection cleanly
        if self.connection is not None and self._owns_connection:
            self.connection.close()
            logger.info("mysql_disconnected", host=self.host)
        self.connection = None

    def cursor(self):
        if self.connection is None:
            raise StoreUnavailable("Not connected to the database")
        return self.connection.cursor()

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> None:
        # Execute a statement and commit it on its own
        cursor = self.cursor()
        try:
            if params:
                cursor.execute(query, tuple(params))
            else:
                cursor.execute(query)
            self.connection.commit()
        except (self.driver.OperationalError, self.driver.InterfaceError) as e:
            raise StoreUnavailable(str(e)) from e
        finally:
            cursor.close()

    def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> list[dict]:
        # Execute SELECT and return rows as dicts
        cursor = self.cursor()
        try:
            if params:
                cursor.execute(query, tuple(params))
            else:
                cursor.execute(query)
            return rows_as_dicts(cursor)
        except (self.driver.OperationalError, self.driver.InterfaceError) as e:
            raise StoreUnavailable(str(e)) from e
        finally:
            cursor.close()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
