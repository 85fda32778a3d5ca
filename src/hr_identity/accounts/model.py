from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class AccountRecord:
    """Thực thể miền (domain): tài khoản đăng nhập.

    ``canonical_id`` is the authoritative employee key. The descriptive
    fields are a shadow copy used when no profile record can be matched.
    """

    canonical_id: str
    login_name: str
    password_hash: str
    role: Role
    is_active: bool = True
    display_name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    employment_status: Optional[str] = None
    last_login: Optional[datetime] = None


@dataclass(frozen=True)
class ProfileRecord:
    """Thực thể miền (domain): hồ sơ nhân viên bên HR.

    ``profile_id`` is written independently of the account and may differ in
    case, separators or prefix from the account's ``canonical_id``.
    """

    profile_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    employment_status: Optional[str] = None
