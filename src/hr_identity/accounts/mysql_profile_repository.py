from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, escape_like, fetchall
from .model import ProfileRecord
from .repository import ProfileRepository


class MySQLProfileRepository(ProfileRepository):
    """Profiles live in the HR ``employees`` table keyed by ``employee_code``."""

    def __init__(self, conn_factory: DatabaseConnection, *, separators: Sequence[str]):
        self._conn_factory = conn_factory
        self._separators = tuple(s for s in separators if s)

    def _stripped_key_sql(self) -> str:
        expr = "employee_code"
        for _ in self._separators:
            expr = f"REPLACE({expr}, %s, '')"
        return f"LOWER({expr})"

    def find_candidates(self, key_suffix: str) -> Sequence[ProfileRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_code, full_name, email, department, position, status
                FROM employees
                WHERE {self._stripped_key_sql()} LIKE %s ESCAPE '\\\\'
                ORDER BY employee_code
                """,
                (*self._separators, "%" + escape_like(key_suffix)),
            )
            rows = fetchall(cur)
            return [
                ProfileRecord(
                    profile_id=str(r["employee_code"]),
                    display_name=r.get("full_name"),
                    email=r.get("email"),
                    department=r.get("department"),
                    position=r.get("position"),
                    employment_status=r.get("status"),
                )
                for r in rows
            ]
