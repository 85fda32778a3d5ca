from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from ..common.datetime_utils import as_utc, to_naive_utc
from ..core.exceptions import StoreUnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# Connector errors that mean "the store is not reachable right now".
TRANSIENT_ERRORS = (mysql_errors.InterfaceError, mysql_errors.OperationalError)
# Server errors that succeed when the transaction is simply retried.
RETRYABLE_ERRNOS = frozenset({errorcode.ER_LOCK_WAIT_TIMEOUT, errorcode.ER_LOCK_DEADLOCK})


def is_transient(error: Exception) -> bool:
    if isinstance(error, TRANSIENT_ERRORS):
        return True
    return isinstance(error, mysql.connector.Error) and error.errno in RETRYABLE_ERRNOS


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Open a connection, yield ``(conn, cursor)`` and commit on success.

    Everything executed inside one ``with`` block is a single transaction:
    either all of it is committed or it is rolled back.
    """
    try:
        conn = conn_factory.connect()
    except TRANSIENT_ERRORS as e:
        logger.warning("database connect failed: %s", e)
        raise StoreUnavailableError("Credential store is unavailable") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception as e:
        _safe_rollback(conn)
        if is_transient(e):
            logger.warning("database operation failed: %s", e)
            raise StoreUnavailableError("Credential store is unavailable") from e
        raise
    finally:
        conn.close()


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error:
        # connection already gone; the server discards the transaction
        logger.debug("rollback skipped on a dead connection")


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_db_datetime(value: datetime) -> datetime:
    """MySQL DATETIME columns hold naive UTC values."""
    return to_naive_utc(value)


def from_db_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        return as_utc(datetime.fromisoformat(value))
    raise TypeError(f"Unsupported MySQL DATETIME value type: {type(value)!r}")


def to_db_json(value: Optional[dict]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def from_db_json(value: Any) -> dict:
    """Normalize JSON columns across connector implementations.

    mysql-connector can return JSON as str, bytes or (rarely) an already
    decoded dict.
    """
    if value is None or value == "":
        return {}
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return dict(json.loads(value))


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
