from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import SessionEndReason


@dataclass(frozen=True)
class Session:
    """Thực thể miền (domain): phiên đăng nhập phía server.

    Created active; the only mutation afterwards is the one-way switch to
    inactive, which stamps ``ended_at``. Rows are kept for audit.
    """

    session_id: str
    canonical_id: str
    token_fingerprint: str
    expires_at: datetime
    created_at: datetime
    is_active: bool = True
    client_metadata: dict = field(default_factory=dict)
    ended_at: Optional[datetime] = None

    def is_live(self, now: datetime) -> bool:
        return self.is_active and self.expires_at > now

    def end_reason_at(self, now: datetime) -> Optional[SessionEndReason]:
        """Like ``end_reason`` but also covers expiry the sweep has not stamped yet."""
        if self.is_live(now):
            return None
        return self.end_reason or SessionEndReason.EXPIRED

    @property
    def end_reason(self) -> Optional[SessionEndReason]:
        if self.is_active:
            return None
        if self.ended_at is not None and self.ended_at < self.expires_at:
            return SessionEndReason.REVOKED
        return SessionEndReason.EXPIRED


@dataclass(frozen=True)
class SessionStats:
    total: int
    live: int
    identities: int
