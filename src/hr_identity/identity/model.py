from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class EmployeeIdentity:
    """Canonical employee view merged from an account and its profile.

    Derived on every resolution, never stored.
    """

    canonical_id: str
    login_name: str
    role: Role
    display_name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    employment_status: Optional[str] = None
    profile_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.canonical_id,
            "username": self.login_name,
            "role": self.role.value,
            "full_name": self.display_name,
            "email": self.email,
            "department": self.department,
            "position": self.position,
            "employment_status": self.employment_status,
        }
