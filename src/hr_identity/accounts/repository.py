from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import AccountRecord, ProfileRecord


class AccountRepository(Protocol):
    """Repository interface for account records.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_login_name(self, login_name: str) -> Optional[AccountRecord]:
        raise NotImplementedError

    def get_by_canonical_id(self, canonical_id: str) -> Optional[AccountRecord]:
        raise NotImplementedError

    def create_account(
        self,
        *,
        canonical_id: str,
        login_name: str,
        password_hash: str,
        role: Role,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def update_password_hash(self, canonical_id: str, password_hash: str) -> bool:
        raise NotImplementedError

    def set_active(self, canonical_id: str, *, is_active: bool) -> bool:
        raise NotImplementedError

    def touch_last_login(self, canonical_id: str, *, at: datetime) -> None:
        raise NotImplementedError

    def delete_by_canonical_id(self, canonical_id: str) -> bool:
        raise NotImplementedError


class ProfileRepository(Protocol):
    def find_candidates(self, key_suffix: str) -> Sequence[ProfileRecord]:
        """Return profiles whose separator-free, lower-cased key ends with ``key_suffix``.

        This is a coarse pre-filter; callers re-check every candidate with
        the key normalizer.
        """

        raise NotImplementedError
