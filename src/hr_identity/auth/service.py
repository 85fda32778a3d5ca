from __future__ import annotations

import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional

from werkzeug.security import generate_password_hash

from ..accounts.repository import AccountRepository
from ..accounts.service import password_matches
from ..common.datetime_utils import as_utc, now_utc
from ..common.validators import require_positive_ttl
from ..core.constants import DEFAULT_SESSION_LIST_LIMIT
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    IdentityNotFoundError,
    SessionRevokedError,
    StoreUnavailableError,
    ValidationError,
)
from ..identity.resolver import IdentityResolver
from ..sessions.model import Session
from ..sessions.service import SessionRegistry
from ..tokens.service import TokenService, fingerprint
from .model import AuthenticatedPrincipal, LoginResult, RefreshResult

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # checked against for unknown login names so both failure paths cost the same
    return generate_password_hash("not-a-real-password")


class AuthService:
    """Use case: login, per-request authentication, logout and refresh.

    Token verification and the session registry check are separate steps;
    a request is authenticated only when both pass and the identity still
    resolves to the token's subject.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        resolver: IdentityResolver,
        tokens: TokenService,
        sessions: SessionRegistry,
        *,
        session_ttl: timedelta,
        remember_me_ttl: timedelta,
        refresh_window: timedelta,
    ):
        self._accounts = accounts
        self._resolver = resolver
        self._tokens = tokens
        self._sessions = sessions
        self._session_ttl = require_positive_ttl(session_ttl, "session_ttl")
        self._remember_me_ttl = require_positive_ttl(remember_me_ttl, "remember_me_ttl")
        self._refresh_window = refresh_window

    def ttl_for(self, remember_me: bool) -> timedelta:
        ttl = self._remember_me_ttl if remember_me else self._session_ttl
        return self._tokens.clamp_ttl(ttl)

    def login(
        self,
        login_name: str,
        password: str,
        *,
        remember_me: bool = False,
        client_metadata: Optional[dict] = None,
        now: datetime | None = None,
    ) -> LoginResult:
        login_name = (login_name or "").strip()
        if not login_name or not password:
            raise ValidationError("Login name and password are required")

        account = self._accounts.get_by_login_name(login_name)
        if not account or not account.is_active:
            password_matches(_dummy_hash(), password)
            logger.info("login failed for %r", login_name)
            raise AuthenticationError()

        if not password_matches(account.password_hash, password):
            logger.info("login failed for %r", login_name)
            raise AuthenticationError()

        identity = self._resolver.resolve_account(account)
        issued = self._tokens.issue(identity, account.role, self.ttl_for(remember_me), now=now)
        session = self._sessions.open(
            identity.canonical_id,
            issued.fingerprint,
            issued.ttl,
            client_metadata,
            now=issued.issued_at,
        )

        try:
            self._accounts.touch_last_login(identity.canonical_id, at=issued.issued_at)
        except StoreUnavailableError:
            logger.warning("could not record last login for %s", identity.canonical_id)

        logger.info("login ok for %s (remember_me=%s)", identity.canonical_id, bool(remember_me))
        return LoginResult(identity=identity, token=issued.token, expires_at=issued.expires_at, session=session)

    def authenticate_request(self, raw_token: str, *, now: datetime | None = None) -> AuthenticatedPrincipal:
        current = as_utc(now or now_utc())
        claims = self._tokens.verify(raw_token, now=current)

        session = self._sessions.get(fingerprint(raw_token))
        if session is None or not session.is_live(current):
            raise SessionRevokedError()
        if session.canonical_id != claims.canonical_id:
            logger.warning("session owner %s does not match token subject %s", session.canonical_id, claims.canonical_id)
            raise SessionRevokedError()

        try:
            identity = self._resolver.resolve(claims.login_name)
        except IdentityNotFoundError as e:
            raise SessionRevokedError() from e

        if identity.canonical_id != claims.canonical_id:
            # login name now belongs to another account
            logger.warning(
                "login name %r moved from %s to %s; rejecting old token",
                claims.login_name,
                claims.canonical_id,
                identity.canonical_id,
            )
            raise SessionRevokedError()

        return AuthenticatedPrincipal(identity=identity, role=identity.role, session=session, claims=claims)

    def logout(self, token_fingerprint: str, *, now: datetime | None = None) -> None:
        self._sessions.revoke(token_fingerprint, now=now)

    def logout_token(self, raw_token: str, *, now: datetime | None = None) -> None:
        if raw_token:
            self.logout(fingerprint(raw_token), now=now)

    def logout_all(self, canonical_id: str, *, now: datetime | None = None) -> int:
        return self._sessions.revoke_all(canonical_id, now=now)

    def list_sessions(
        self,
        principal: AuthenticatedPrincipal,
        canonical_id: str,
        *,
        active_only: bool = True,
        limit: int = DEFAULT_SESSION_LIST_LIMIT,
        now: datetime | None = None,
    ) -> list[Session]:
        # own sessions for everyone, any identity for admins
        if principal.role != Role.ADMIN and principal.canonical_id != canonical_id:
            raise AuthorizationError("Access denied")
        return self._sessions.list_sessions(canonical_id, active_only=active_only, limit=limit, now=now)

    def refresh(
        self,
        raw_token: str,
        *,
        remember_me: bool = False,
        client_metadata: Optional[dict] = None,
        now: datetime | None = None,
    ) -> RefreshResult:
        """Issue a replacement token once the current one is close to expiry."""
        current = as_utc(now or now_utc())
        principal = self.authenticate_request(raw_token, now=current)

        remaining = principal.claims.expires_at - current
        if remaining > self._refresh_window:
            return RefreshResult(
                needs_refresh=False,
                expires_at=principal.claims.expires_at,
                time_until_expiry=remaining,
            )

        issued = self._tokens.issue(principal.identity, principal.role, self.ttl_for(remember_me), now=current)
        rotated = self._sessions.rotate(
            principal.session.token_fingerprint,
            principal.canonical_id,
            issued.fingerprint,
            issued.ttl,
            client_metadata if client_metadata is not None else principal.session.client_metadata,
            now=issued.issued_at,
        )
        if rotated is None:
            raise SessionRevokedError()

        logger.info("token refreshed for %s", principal.canonical_id)
        return RefreshResult(
            needs_refresh=True,
            expires_at=issued.expires_at,
            time_until_expiry=issued.expires_at - current,
            token=issued.token,
        )
