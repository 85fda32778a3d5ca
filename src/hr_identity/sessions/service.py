from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import as_utc, now_utc
from ..common.validators import require_non_empty, require_positive_ttl
from ..core.constants import DEFAULT_SESSION_LIST_LIMIT, MAX_SESSION_LIST_LIMIT
from ..core.exceptions import ValidationError
from .model import Session, SessionStats
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Use case: server-side record of issued sessions.

    The registry, not the token, decides whether a session may still be
    used. Liveness is computed from the row on every read, so an expired
    session is never live even if ``sweep_expired`` has not run yet.
    """

    def __init__(self, sessions: SessionRepository):
        self._sessions = sessions

    def open(
        self,
        canonical_id: str,
        token_fingerprint: str,
        ttl: timedelta,
        client_metadata: Optional[dict] = None,
        *,
        now: datetime | None = None,
    ) -> Session:
        session = self._new_session(canonical_id, token_fingerprint, ttl, client_metadata, now=now)
        self._sessions.insert(session)
        logger.info("session %s opened for %s until %s", session.session_id, canonical_id, session.expires_at.isoformat())
        return session

    def get(self, token_fingerprint: str) -> Optional[Session]:
        if not token_fingerprint:
            return None
        return self._sessions.get_by_fingerprint(token_fingerprint)

    def is_live(self, token_fingerprint: str, *, now: datetime | None = None) -> bool:
        session = self.get(token_fingerprint)
        return bool(session and session.is_live(as_utc(now or now_utc())))

    def revoke(self, token_fingerprint: str, *, now: datetime | None = None) -> None:
        """Terminate one session. Unknown or already ended sessions are fine."""
        if not token_fingerprint:
            return
        if self._sessions.deactivate(token_fingerprint, now=as_utc(now or now_utc())):
            logger.info("session revoked")

    def revoke_all(
        self,
        canonical_id: str,
        *,
        except_fingerprint: Optional[str] = None,
        now: datetime | None = None,
    ) -> int:
        """Terminate every session owned by ``canonical_id``; returns how many."""
        count = self._sessions.deactivate_all(
            canonical_id,
            now=as_utc(now or now_utc()),
            except_fingerprint=except_fingerprint,
        )
        if count:
            logger.info("revoked %d session(s) for %s", count, canonical_id)
        return count

    def rotate(
        self,
        old_fingerprint: str,
        canonical_id: str,
        new_fingerprint: str,
        ttl: timedelta,
        client_metadata: Optional[dict] = None,
        *,
        now: datetime | None = None,
    ) -> Optional[Session]:
        """Swap a live session for a new one atomically.

        Returns the new session, or None when the old one was no longer
        live (in which case nothing was created).
        """
        new_session = self._new_session(canonical_id, new_fingerprint, ttl, client_metadata, now=now)
        if not self._sessions.replace(old_fingerprint, new_session, now=new_session.created_at):
            logger.info("refresh refused for %s: session not live", canonical_id)
            return None
        logger.info("session rotated to %s for %s", new_session.session_id, canonical_id)
        return new_session

    def sweep_expired(self, *, now: datetime | None = None) -> int:
        count = self._sessions.deactivate_expired(now=as_utc(now or now_utc()))
        if count:
            logger.info("swept %d expired session(s)", count)
        return count

    def list_sessions(
        self,
        canonical_id: str,
        *,
        active_only: bool = True,
        limit: int = DEFAULT_SESSION_LIST_LIMIT,
        now: datetime | None = None,
    ) -> list[Session]:
        """Audit view of one identity's sessions, newest first."""
        canonical_id = require_non_empty(canonical_id, "canonical_id")
        if not 0 < limit <= MAX_SESSION_LIST_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_SESSION_LIST_LIMIT}")
        return self._sessions.list_for(
            canonical_id,
            now=as_utc(now or now_utc()),
            active_only=bool(active_only),
            limit=limit,
        )

    def stats(self, *, now: datetime | None = None) -> SessionStats:
        return self._sessions.stats(now=as_utc(now or now_utc()))

    def _new_session(
        self,
        canonical_id: str,
        token_fingerprint: str,
        ttl: timedelta,
        client_metadata: Optional[dict],
        *,
        now: datetime | None,
    ) -> Session:
        canonical_id = require_non_empty(canonical_id, "canonical_id")
        token_fingerprint = require_non_empty(token_fingerprint, "token_fingerprint")
        require_positive_ttl(ttl)

        created_at = as_utc(now or now_utc())
        return Session(
            session_id=uuid.uuid4().hex,
            canonical_id=canonical_id,
            token_fingerprint=token_fingerprint,
            expires_at=created_at + ttl,
            created_at=created_at,
            is_active=True,
            client_metadata=dict(client_metadata or {}),
        )
