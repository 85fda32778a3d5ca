from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.constants import DEFAULT_CONNECT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "hr_identity")),
        connect_timeout=int(db_config.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT_SECONDS)),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        connection_timeout=target.connect_timeout,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes and -- comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    in_comment = False
    escape = False
    prev = ""

    for ch in sql:
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            prev = ch
            continue

        if escape:
            buf.append(ch)
            escape = False
            prev = ch
            continue

        if ch == "\\" and (in_single or in_double):
            buf.append(ch)
            escape = True
            prev = ch
            continue

        if ch == "-" and prev == "-" and not in_single and not in_double:
            buf.pop()
            in_comment = True
            prev = ""
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            prev = ch
            if stmt:
                yield stmt
            continue

        buf.append(ch)
        prev = ch

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    target = _as_target(db_config)
    ensure_database_exists(db_config)

    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


DEMO_ACCOUNTS = (
    # canonical id, login, password, role, shadow name, shadow department
    ("emp_001", "admin", "admin123", "admin", "System Administrator", None),
    ("emp_002", "nguyenvana", "staff123", "employee", "Nguyen Van A", "HR"),
)

DEMO_PROFILES = (
    # keys deliberately use the HR tool's format, not the account format
    ("EMP001", "Admin Demo", "admin@example.com", "IT", "IT Manager", "active"),
    ("EMP-002", "Nguyễn Văn A", "vana@example.com", "HR", "HR Specialist", "active"),
)


def ensure_demo_accounts(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)

        for code, full_name, email, department, position, status in DEMO_PROFILES:
            cur.execute("SELECT employee_code FROM employees WHERE employee_code=%s", (code,))
            if cur.fetchone():
                continue
            cur.execute(
                """
                INSERT INTO employees (employee_code, full_name, email, department, position, status)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (code, full_name, email, department, position, status),
            )

        for canonical_id, username, password, role, full_name, department in DEMO_ACCOUNTS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT employee_id FROM user_accounts WHERE username=%s", (username,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE user_accounts
                    SET password_hash=%s, role=%s, full_name=%s, department=%s, is_active=1
                    WHERE username=%s
                    """,
                    (password_hash, role, full_name, department, username),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO user_accounts (employee_id, username, password_hash, role, full_name, department)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (canonical_id, username, password_hash, role, full_name, department),
                )

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    target = _as_target(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
