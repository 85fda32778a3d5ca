from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..sessions.service import SessionRegistry
from .repository import AccountRepository

logger = logging.getLogger(__name__)


def password_matches(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password or "")
    except (ValueError, TypeError):
        # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
        return False


class AccountService:
    """Use case: manage accounts and keep their sessions in step.

    Whenever an account is deactivated or removed, every session it owns is
    terminated through ``on_identity_removed``.
    """

    def __init__(self, accounts: AccountRepository, sessions: SessionRegistry):
        self._accounts = accounts
        self._sessions = sessions

    def create_account(
        self,
        *,
        canonical_id: str,
        login_name: str,
        password: str,
        role: Role,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> str:
        canonical_id = require_non_empty(canonical_id, "Employee ID")
        login_name = require_non_empty(login_name, "Login name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._accounts.get_by_login_name(login_name):
            raise ValidationError("Login name already exists")
        if self._accounts.get_by_canonical_id(canonical_id):
            raise ValidationError("Employee ID already has an account")

        created = self._accounts.create_account(
            canonical_id=canonical_id,
            login_name=login_name,
            password_hash=generate_password_hash(password),
            role=Role(role),
            display_name=display_name,
            email=email,
            department=department,
            position=position,
        )
        logger.info("account %s created (login=%s, role=%s)", created, login_name, Role(role).value)
        return created

    def change_password(
        self,
        canonical_id: str,
        *,
        current_password: str,
        new_password: str,
        keep_fingerprint: Optional[str] = None,
    ) -> int:
        """Rotate the password and log out every other device.

        Returns the number of sessions that were terminated.
        """
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)

        account = self._accounts.get_by_canonical_id(canonical_id)
        if not account or not account.is_active:
            raise AuthenticationError()
        if not password_matches(account.password_hash, current_password):
            raise AuthenticationError("Current password is incorrect")

        self._accounts.update_password_hash(canonical_id, generate_password_hash(new_password))
        revoked = self._sessions.revoke_all(canonical_id, except_fingerprint=keep_fingerprint)
        logger.info("password changed for %s; %d other session(s) revoked", canonical_id, revoked)
        return revoked

    def deactivate(self, *, current_role: Role, canonical_id: str) -> int:
        self._require_admin(current_role)
        account = self._accounts.get_by_canonical_id(canonical_id)
        if not account:
            raise ValidationError("Account does not exist")

        self._accounts.set_active(canonical_id, is_active=False)
        return self.on_identity_removed(canonical_id)

    def delete_account(self, *, current_role: Role, canonical_id: str) -> int:
        self._require_admin(current_role)
        account = self._accounts.get_by_canonical_id(canonical_id)
        if not account:
            raise ValidationError("Account does not exist")
        if account.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deleted")

        # sessions first: a failed delete must not leave live sessions behind
        revoked = self.on_identity_removed(canonical_id)
        if not self._accounts.delete_by_canonical_id(canonical_id):
            raise ValidationError("Deleting the account failed")
        return revoked

    def on_identity_removed(self, canonical_id: str) -> int:
        """Hook for employee management: the identity is gone or disabled upstream."""
        revoked = self._sessions.revoke_all(canonical_id)
        logger.info("identity %s removed; %d session(s) revoked", canonical_id, revoked)
        return revoked

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission for this action")
