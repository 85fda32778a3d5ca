from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    from_db_json,
    to_db_datetime,
    to_db_json,
)
from .model import Session, SessionStats
from .repository import SessionRepository

_SESSION_COLUMNS = """
    session_id, employee_id, token_hash, expires_at, is_active,
    client_metadata, created_at, ended_at
"""


def _row_to_session(row: dict) -> Session:
    return Session(
        session_id=row["session_id"],
        canonical_id=str(row["employee_id"]),
        token_fingerprint=row["token_hash"],
        expires_at=from_db_datetime(row["expires_at"]),
        created_at=from_db_datetime(row["created_at"]),
        is_active=bool(row["is_active"]),
        client_metadata=from_db_json(row.get("client_metadata")),
        ended_at=from_db_datetime(row.get("ended_at")),
    )


def _insert(cur, session: Session) -> None:
    cur.execute(
        """
        INSERT INTO user_sessions(
            session_id, employee_id, token_hash, expires_at, is_active,
            client_metadata, created_at
        )
        VALUES(%s,%s,%s,%s,1,%s,%s)
        """,
        (
            session.session_id,
            session.canonical_id,
            session.token_fingerprint,
            to_db_datetime(session.expires_at),
            to_db_json(session.client_metadata),
            to_db_datetime(session.created_at),
        ),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, session: Session) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            _insert(cur, session)

    def get_by_fingerprint(self, token_fingerprint: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM user_sessions WHERE token_hash=%s",
                (token_fingerprint,),
            )
            row = fetchone(cur)
            return _row_to_session(row) if row else None

    def deactivate(self, token_fingerprint: str, *, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE user_sessions SET is_active=0, ended_at=%s WHERE token_hash=%s AND is_active=1",
                (to_db_datetime(now), token_fingerprint),
            )
            return cur.rowcount > 0

    def deactivate_all(self, canonical_id: str, *, now: datetime, except_fingerprint: Optional[str] = None) -> int:
        sql = "UPDATE user_sessions SET is_active=0, ended_at=%s WHERE employee_id=%s AND is_active=1"
        params: tuple = (to_db_datetime(now), canonical_id)
        if except_fingerprint:
            sql += " AND token_hash<>%s"
            params += (except_fingerprint,)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return int(cur.rowcount)

    def deactivate_expired(self, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE user_sessions
                SET is_active=0, ended_at=expires_at
                WHERE is_active=1 AND expires_at<=%s
                """,
                (to_db_datetime(now),),
            )
            return int(cur.rowcount)

    def replace(self, old_fingerprint: str, new_session: Session, *, now: datetime) -> bool:
        db_now = to_db_datetime(now)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE user_sessions SET is_active=0, ended_at=%s
                WHERE token_hash=%s AND employee_id=%s AND is_active=1 AND expires_at>%s
                """,
                (db_now, old_fingerprint, new_session.canonical_id, db_now),
            )
            if cur.rowcount != 1:
                return False
            _insert(cur, new_session)
            return True

    def list_for(self, canonical_id: str, *, now: datetime, active_only: bool, limit: int) -> list[Session]:
        sql = f"SELECT {_SESSION_COLUMNS} FROM user_sessions WHERE employee_id=%s"
        params: tuple = (canonical_id,)
        if active_only:
            sql += " AND is_active=1 AND expires_at>%s"
            params += (to_db_datetime(now),)
        sql += " ORDER BY created_at DESC, session_id DESC LIMIT %s"
        params += (int(limit),)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_session(r) for r in fetchall(cur)]

    def stats(self, *, now: datetime) -> SessionStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(CASE WHEN is_active=1 AND expires_at>%s THEN 1 ELSE 0 END), 0) AS live,
                       COUNT(DISTINCT CASE WHEN is_active=1 AND expires_at>%s THEN employee_id END) AS identities
                FROM user_sessions
                """,
                (to_db_datetime(now), to_db_datetime(now)),
            )
            row = fetchone(cur) or {}
            return SessionStats(
                total=int(row.get("total") or 0),
                live=int(row.get("live") or 0),
                identities=int(row.get("identities") or 0),
            )
