from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò người dùng dùng cho phân quyền."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class EmploymentStatus(str, Enum):
    """Trạng thái làm việc lưu trong hồ sơ nhân viên."""

    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    INACTIVE = "inactive"
    TERMINATED = "terminated"


class SessionEndReason(str, Enum):
    REVOKED = "revoked"
    EXPIRED = "expired"
