"""Signed bearer tokens (HS256 JWT).

Tokens are stateless: the signature proves authenticity, the ``exp`` claim
bounds lifetime. Verifying a token never proves the session is still open;
callers that gate access must also ask the session registry.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

import jwt

from ..common.datetime_utils import as_utc, now_utc
from ..common.validators import require_positive_ttl
from ..core.constants import JWT_ALGORITHM
from ..core.enums import Role
from ..core.exceptions import InvalidTokenError, TokenExpiredError
from ..identity.model import EmployeeIdentity
from .model import IssuedToken, TokenClaims

logger = logging.getLogger(__name__)

CLAIM_SUB = "sub"
CLAIM_USER = "usr"
CLAIM_ROLE = "role"
CLAIM_IAT = "iat"
CLAIM_EXP = "exp"
CLAIM_JTI = "jti"

_REQUIRED_CLAIMS = [CLAIM_SUB, CLAIM_USER, CLAIM_ROLE, CLAIM_IAT, CLAIM_EXP, CLAIM_JTI]


def fingerprint(token: str) -> str:
    """One-way fingerprint stored instead of the raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _from_numeric_date(value) -> datetime:
    # fractional NumericDate, microsecond precision
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


class TokenService:
    def __init__(self, secret: str, *, max_ttl: timedelta):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self._max_ttl = require_positive_ttl(max_ttl, "max_ttl")

    @property
    def max_ttl(self) -> timedelta:
        return self._max_ttl

    def clamp_ttl(self, ttl: timedelta) -> timedelta:
        require_positive_ttl(ttl)
        return min(ttl, self._max_ttl)

    def issue(
        self,
        identity: EmployeeIdentity,
        role: Role,
        ttl: timedelta,
        *,
        now: datetime | None = None,
    ) -> IssuedToken:
        ttl = self.clamp_ttl(ttl)
        issued_at = as_utc(now or now_utc())
        expires_at = issued_at + ttl

        payload = {
            CLAIM_SUB: identity.canonical_id,
            CLAIM_USER: identity.login_name,
            CLAIM_ROLE: Role(role).value,
            CLAIM_IAT: issued_at.timestamp(),
            CLAIM_EXP: expires_at.timestamp(),
            CLAIM_JTI: secrets.token_hex(16),
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        return IssuedToken(
            token=token,
            fingerprint=fingerprint(token),
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def verify(self, token: str, *, now: datetime | None = None) -> TokenClaims:
        """Check signature, then expiry, then return the claims.

        Any signature or format problem is ``InvalidTokenError``; an
        authentic but stale token is ``TokenExpiredError``.
        """
        if not token:
            raise InvalidTokenError()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": _REQUIRED_CLAIMS},
            )
            claims = TokenClaims(
                canonical_id=str(payload[CLAIM_SUB]),
                login_name=str(payload[CLAIM_USER]),
                role=Role(payload[CLAIM_ROLE]),
                issued_at=_from_numeric_date(payload[CLAIM_IAT]),
                expires_at=_from_numeric_date(payload[CLAIM_EXP]),
            )
        except (jwt.InvalidTokenError, KeyError, TypeError, ValueError, OverflowError) as e:
            logger.info("token rejected: %s", type(e).__name__)
            raise InvalidTokenError() from e

        if not claims.canonical_id:
            raise InvalidTokenError()

        current = as_utc(now or now_utc())
        if not current < claims.expires_at:
            logger.info("token expired for %s", claims.canonical_id)
            raise TokenExpiredError()
        return claims
