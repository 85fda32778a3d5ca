from __future__ import annotations

from typing import Sequence

GENERIC_LOGIN_FAILURE = "Invalid login name or password"
GENERIC_SESSION_FAILURE = "Session expired, please log in again"


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid.

    The message is always generic so callers cannot tell a missing login
    name from a wrong password.
    """

    def __init__(self, message: str = GENERIC_LOGIN_FAILURE):
        super().__init__(message)


class IdentityNotFoundError(AuthenticationError):
    """No active account carries the requested login name."""


class SessionExpiredError(AuthenticationError):
    """Raised when a presented token can no longer authenticate a request."""

    def __init__(self, message: str = GENERIC_SESSION_FAILURE):
        super().__init__(message)


class InvalidTokenError(SessionExpiredError):
    """Bad signature, wrong algorithm or malformed claims."""


class TokenExpiredError(SessionExpiredError):
    """Signature is fine but the token is past its expiry."""


class SessionRevokedError(SessionExpiredError):
    """Token is authentic but its server-side session is not live."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class AmbiguousIdentityError(DomainError):
    """More than one profile record normalizes to the same account key.

    This is a data-integrity fault for operators, not a user error.
    """

    def __init__(self, canonical_id: str, candidates: Sequence[str]):
        self.canonical_id = canonical_id
        self.candidates = tuple(candidates)
        super().__init__(
            f"Account {canonical_id!r} matches {len(self.candidates)} profiles: {', '.join(self.candidates)}"
        )


class StoreUnavailableError(DomainError):
    """The credential or session store did not answer in time."""

    retryable = True
