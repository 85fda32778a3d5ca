from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from hr_identity.accounts.model import AccountRecord, ProfileRecord
from hr_identity.accounts.service import AccountService
from hr_identity.auth.service import AuthService
from hr_identity.core.enums import Role
from hr_identity.identity.normalization import KeyNormalizer
from hr_identity.identity.resolver import IdentityResolver
from hr_identity.sessions.model import Session, SessionStats
from hr_identity.sessions.service import SessionRegistry
from hr_identity.tokens.service import TokenService

JWT_SECRET = "test-jwt-secret-0123456789abcdef0123456789"


class InMemoryAccounts:
    def __init__(self, *accounts: AccountRecord):
        self.by_id: dict[str, AccountRecord] = {a.canonical_id: a for a in accounts}
        self.last_login_calls: list[tuple[str, datetime]] = []

    def add(self, account: AccountRecord) -> AccountRecord:
        self.by_id[account.canonical_id] = account
        return account

    def get_by_login_name(self, login_name: str) -> Optional[AccountRecord]:
        for a in self.by_id.values():
            if a.login_name == login_name:
                return a
        return None

    def get_by_canonical_id(self, canonical_id: str) -> Optional[AccountRecord]:
        return self.by_id.get(canonical_id)

    def create_account(self, *, canonical_id, login_name, password_hash, role, display_name=None, email=None, department=None, position=None) -> str:
        self.by_id[canonical_id] = AccountRecord(
            canonical_id=canonical_id,
            login_name=login_name,
            password_hash=password_hash,
            role=role,
            display_name=display_name,
            email=email,
            department=department,
            position=position,
        )
        return canonical_id

    def update_password_hash(self, canonical_id: str, password_hash: str) -> bool:
        a = self.by_id.get(canonical_id)
        if not a:
            return False
        self.by_id[canonical_id] = replace(a, password_hash=password_hash)
        return True

    def set_active(self, canonical_id: str, *, is_active: bool) -> bool:
        a = self.by_id.get(canonical_id)
        if not a:
            return False
        self.by_id[canonical_id] = replace(a, is_active=is_active)
        return True

    def touch_last_login(self, canonical_id: str, *, at: datetime) -> None:
        self.last_login_calls.append((canonical_id, at))

    def delete_by_canonical_id(self, canonical_id: str) -> bool:
        return self.by_id.pop(canonical_id, None) is not None


class InMemoryProfiles:
    """Mimics the SQL pre-filter: lower-case, separators removed, suffix match."""

    def __init__(self, *profiles: ProfileRecord, separators=("_", "-", ".", " ")):
        self.profiles = list(profiles)
        self._separators = separators

    def add(self, profile: ProfileRecord) -> ProfileRecord:
        self.profiles.append(profile)
        return profile

    def find_candidates(self, key_suffix: str):
        out = []
        for p in self.profiles:
            stripped = p.profile_id
            for sep in self._separators:
                stripped = stripped.replace(sep, "")
            if stripped.lower().endswith(key_suffix):
                out.append(p)
        return out


class InMemorySessions:
    """Thread-safe session store; every method runs under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self.rows: dict[str, Session] = {}

    def insert(self, session: Session) -> None:
        with self._lock:
            if session.token_fingerprint in self.rows:
                raise ValueError("duplicate fingerprint")
            self.rows[session.token_fingerprint] = session

    def get_by_fingerprint(self, token_fingerprint: str) -> Optional[Session]:
        with self._lock:
            return self.rows.get(token_fingerprint)

    def deactivate(self, token_fingerprint: str, *, now: datetime) -> bool:
        with self._lock:
            s = self.rows.get(token_fingerprint)
            if not s or not s.is_active:
                return False
            self.rows[token_fingerprint] = replace(s, is_active=False, ended_at=now)
            return True

    def deactivate_all(self, canonical_id: str, *, now: datetime, except_fingerprint=None) -> int:
        with self._lock:
            count = 0
            for fp, s in list(self.rows.items()):
                if s.canonical_id == canonical_id and s.is_active and fp != except_fingerprint:
                    self.rows[fp] = replace(s, is_active=False, ended_at=now)
                    count += 1
            return count

    def deactivate_expired(self, *, now: datetime) -> int:
        with self._lock:
            count = 0
            for fp, s in list(self.rows.items()):
                if s.is_active and s.expires_at <= now:
                    self.rows[fp] = replace(s, is_active=False, ended_at=s.expires_at)
                    count += 1
            return count

    def replace(self, old_fingerprint: str, new_session: Session, *, now: datetime) -> bool:
        with self._lock:
            old = self.rows.get(old_fingerprint)
            if not old or old.canonical_id != new_session.canonical_id or not old.is_live(now):
                return False
            self.rows[old_fingerprint] = replace(old, is_active=False, ended_at=now)
            self.rows[new_session.token_fingerprint] = new_session
            return True

    def list_for(self, canonical_id: str, *, now: datetime, active_only: bool, limit: int) -> list[Session]:
        with self._lock:
            rows = [s for s in self.rows.values() if s.canonical_id == canonical_id]
        if active_only:
            rows = [s for s in rows if s.is_live(now)]
        rows.sort(key=lambda s: (s.created_at, s.session_id), reverse=True)
        return rows[:limit]

    def stats(self, *, now: datetime) -> SessionStats:
        with self._lock:
            live = [s for s in self.rows.values() if s.is_live(now)]
            return SessionStats(total=len(self.rows), live=len(live), identities=len({s.canonical_id for s in live}))


def make_account(canonical_id="emp_001", login_name="admin", password="secret123", role=Role.ADMIN, **kwargs) -> AccountRecord:
    return AccountRecord(
        canonical_id=canonical_id,
        login_name=login_name,
        password_hash=generate_password_hash(password),
        role=role,
        **kwargs,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def accounts() -> InMemoryAccounts:
    return InMemoryAccounts(
        make_account(display_name="Shadow Admin", department="Ops", email="shadow@example.com"),
        make_account(canonical_id="emp_002", login_name="nguyenvana", password="staff123", role=Role.EMPLOYEE),
    )


@pytest.fixture
def profiles() -> InMemoryProfiles:
    return InMemoryProfiles(
        ProfileRecord(profile_id="EMP001", display_name="Admin Demo", department="IT", email=None),
    )


@pytest.fixture
def session_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def registry(session_repo) -> SessionRegistry:
    return SessionRegistry(session_repo)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(JWT_SECRET, max_ttl=timedelta(days=30))


@pytest.fixture
def resolver(accounts, profiles) -> IdentityResolver:
    return IdentityResolver(accounts, profiles, KeyNormalizer())


@pytest.fixture
def auth_service(accounts, resolver, tokens, registry) -> AuthService:
    return AuthService(
        accounts,
        resolver,
        tokens,
        registry,
        session_ttl=timedelta(hours=24),
        remember_me_ttl=timedelta(days=30),
        refresh_window=timedelta(hours=2),
    )


@pytest.fixture
def account_service(accounts, registry) -> AccountService:
    return AccountService(accounts, registry)
