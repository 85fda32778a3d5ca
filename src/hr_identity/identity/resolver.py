from __future__ import annotations

import logging
from typing import Optional

from ..accounts.model import AccountRecord, ProfileRecord
from ..accounts.repository import AccountRepository, ProfileRepository
from ..core.exceptions import AmbiguousIdentityError, IdentityNotFoundError
from .model import EmployeeIdentity
from .normalization import KeyNormalizer

logger = logging.getLogger(__name__)

_MERGED_FIELDS = ("display_name", "email", "department", "position", "employment_status")


class IdentityResolver:
    """Use case: turn a login name into one canonical EmployeeIdentity.

    Resolution is a pure read. The account record is authoritative for the
    identifier and role; the profile record, matched by normalized key
    equality, wins for descriptive fields whenever it has a value.
    """

    def __init__(self, accounts: AccountRepository, profiles: ProfileRepository, normalizer: KeyNormalizer | None = None):
        self._accounts = accounts
        self._profiles = profiles
        self._normalizer = normalizer or KeyNormalizer()

    def resolve(self, login_name: str) -> EmployeeIdentity:
        account = self._accounts.get_by_login_name((login_name or "").strip())
        if not account or not account.is_active:
            raise IdentityNotFoundError()
        return self.resolve_account(account)

    def resolve_account(self, account: AccountRecord) -> EmployeeIdentity:
        profile = self.find_profile(account.canonical_id)
        return merge_identity(account, profile)

    def find_profile(self, canonical_id: str) -> Optional[ProfileRecord]:
        suffix = self._normalizer.like_suffix(canonical_id)
        if not suffix:
            return None

        candidates = self._profiles.find_candidates(suffix)
        matched = [p for p in candidates if self._normalizer.matches(p.profile_id, canonical_id)]

        if len(matched) > 1:
            keys = sorted(p.profile_id for p in matched)
            logger.error(
                "ambiguous identity: account %s matches profiles %s; fix the employee keys",
                canonical_id,
                keys,
            )
            raise AmbiguousIdentityError(canonical_id, keys)

        if not matched:
            logger.debug("no profile for account %s, using account fields", canonical_id)
            return None
        return matched[0]


def merge_identity(account: AccountRecord, profile: Optional[ProfileRecord]) -> EmployeeIdentity:
    values = {}
    for name in _MERGED_FIELDS:
        value = getattr(profile, name) if profile is not None else None
        values[name] = value if value is not None else getattr(account, name)

    return EmployeeIdentity(
        canonical_id=account.canonical_id,
        login_name=account.login_name,
        role=account.role,
        profile_id=profile.profile_id if profile is not None else None,
        **values,
    )

