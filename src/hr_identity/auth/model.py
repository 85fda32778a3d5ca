from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import Role
from ..identity.model import EmployeeIdentity
from ..sessions.model import Session
from ..tokens.model import TokenClaims


@dataclass(frozen=True)
class LoginResult:
    identity: EmployeeIdentity
    token: str
    expires_at: datetime
    session: Session


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """What the request guard hands to protected endpoints."""

    identity: EmployeeIdentity
    role: Role
    session: Session
    claims: TokenClaims

    @property
    def canonical_id(self) -> str:
        return self.identity.canonical_id


@dataclass(frozen=True)
class RefreshResult:
    needs_refresh: bool
    expires_at: datetime
    time_until_expiry: timedelta
    token: Optional[str] = None
