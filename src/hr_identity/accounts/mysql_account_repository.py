from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_db_datetime, to_db_datetime
from .model import AccountRecord
from .repository import AccountRepository

_ACCOUNT_COLUMNS = """
    employee_id, username, password_hash, role, is_active,
    full_name, email, department, position, employee_status, last_login
"""


def _row_to_account(row: dict) -> AccountRecord:
    return AccountRecord(
        canonical_id=str(row["employee_id"]),
        login_name=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
        display_name=row.get("full_name"),
        email=row.get("email"),
        department=row.get("department"),
        position=row.get("position"),
        employment_status=row.get("employee_status"),
        last_login=from_db_datetime(row.get("last_login")),
    )


class MySQLAccountRepository(AccountRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_login_name(self, login_name: str) -> Optional[AccountRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM user_accounts WHERE username=%s",
                (login_name,),
            )
            row = fetchone(cur)
            return _row_to_account(row) if row else None

    def get_by_canonical_id(self, canonical_id: str) -> Optional[AccountRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM user_accounts WHERE employee_id=%s",
                (canonical_id,),
            )
            row = fetchone(cur)
            return _row_to_account(row) if row else None

    def create_account(
        self,
        *,
        canonical_id: str,
        login_name: str,
        password_hash: str,
        role: Role,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_accounts(
                    employee_id, username, password_hash, role, is_active,
                    full_name, email, department, position, employee_status
                )
                VALUES(%s,%s,%s,%s,1,%s,%s,%s,%s,'active')
                """,
                (canonical_id, login_name, password_hash, role.value, display_name, email, department, position),
            )
            return canonical_id

    def update_password_hash(self, canonical_id: str, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE user_accounts SET password_hash=%s WHERE employee_id=%s",
                (password_hash, canonical_id),
            )
            return cur.rowcount > 0

    def set_active(self, canonical_id: str, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE user_accounts SET is_active=%s WHERE employee_id=%s",
                (1 if is_active else 0, canonical_id),
            )
            return cur.rowcount > 0

    def touch_last_login(self, canonical_id: str, *, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE user_accounts SET last_login=%s WHERE employee_id=%s",
                (to_db_datetime(at), canonical_id),
            )

    def delete_by_canonical_id(self, canonical_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_accounts WHERE employee_id=%s", (canonical_id,))
            return cur.rowcount > 0
