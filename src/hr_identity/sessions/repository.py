from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import Session, SessionStats


class SessionRepository(Protocol):
    """Persistence for sessions.

    Every method is atomic on its own: a reader never observes a partially
    written row, and state changes only ever go from active to inactive.
    """

    def insert(self, session: Session) -> None:
        raise NotImplementedError

    def get_by_fingerprint(self, token_fingerprint: str) -> Optional[Session]:
        raise NotImplementedError

    def deactivate(self, token_fingerprint: str, *, now: datetime) -> bool:
        raise NotImplementedError

    def deactivate_all(self, canonical_id: str, *, now: datetime, except_fingerprint: Optional[str] = None) -> int:
        raise NotImplementedError

    def deactivate_expired(self, *, now: datetime) -> int:
        raise NotImplementedError

    def replace(self, old_fingerprint: str, new_session: Session, *, now: datetime) -> bool:
        """Deactivate the live session ``old_fingerprint`` and insert ``new_session``.

        Both happen or neither does; returns False when the old session was
        not live (nothing is inserted then).
        """

        raise NotImplementedError

    def list_for(self, canonical_id: str, *, now: datetime, active_only: bool, limit: int) -> list[Session]:
        """Sessions owned by ``canonical_id``, newest first.

        ``active_only`` keeps only sessions that are live at ``now``.
        """

        raise NotImplementedError

    def stats(self, *, now: datetime) -> SessionStats:
        raise NotImplementedError
