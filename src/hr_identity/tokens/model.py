from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import Role


@dataclass(frozen=True)
class TokenClaims:
    """What a verified token proves: who, which role, issued when."""

    canonical_id: str
    login_name: str
    role: Role
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    token: str
    fingerprint: str
    issued_at: datetime
    expires_at: datetime

    @property
    def ttl(self):
        return self.expires_at - self.issued_at
