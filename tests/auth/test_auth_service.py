from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import JWT_SECRET, make_account
from hr_identity.auth.service import AuthService
from hr_identity.core.enums import Role
from hr_identity.core.exceptions import (
    GENERIC_LOGIN_FAILURE,
    AuthenticationError,
    AuthorizationError,
    InvalidTokenError,
    SessionRevokedError,
    StoreUnavailableError,
    TokenExpiredError,
    ValidationError,
)
from hr_identity.tokens.service import TokenService, fingerprint


def test_login_resolves_identity_and_opens_session(auth_service, registry, fixed_now):
    result = auth_service.login("admin", "secret123", client_metadata={"ip": "1.2.3.4"}, now=fixed_now)

    assert result.identity.canonical_id == "emp_001"
    assert result.identity.department == "IT"
    assert result.expires_at == fixed_now + timedelta(hours=24)
    assert result.session.token_fingerprint == fingerprint(result.token)
    assert result.session.client_metadata == {"ip": "1.2.3.4"}
    assert registry.is_live(fingerprint(result.token), now=fixed_now)


def test_login_records_last_login(auth_service, accounts, fixed_now):
    auth_service.login("admin", "secret123", now=fixed_now)

    assert accounts.last_login_calls == [("emp_001", fixed_now)]


def test_login_survives_last_login_outage(auth_service, accounts, fixed_now):
    def down(canonical_id, *, at):
        raise StoreUnavailableError("accounts down")

    accounts.touch_last_login = down

    assert auth_service.login("admin", "secret123", now=fixed_now).token


@pytest.mark.parametrize("login_name, password", [("admin", "wrong"), ("nobody", "secret123")])
def test_login_failures_are_indistinguishable(auth_service, session_repo, login_name, password, fixed_now):
    with pytest.raises(AuthenticationError) as exc:
        auth_service.login(login_name, password, now=fixed_now)

    assert str(exc.value) == GENERIC_LOGIN_FAILURE
    assert session_repo.rows == {}


def test_inactive_account_cannot_log_in(auth_service, accounts, fixed_now):
    accounts.set_active("emp_002", is_active=False)

    with pytest.raises(AuthenticationError) as exc:
        auth_service.login("nguyenvana", "staff123", now=fixed_now)

    assert str(exc.value) == GENERIC_LOGIN_FAILURE


@pytest.mark.parametrize("login_name, password", [("", "x"), ("  ", "x"), ("admin", "")])
def test_login_requires_both_fields(auth_service, login_name, password, fixed_now):
    with pytest.raises(ValidationError):
        auth_service.login(login_name, password, now=fixed_now)


def test_remember_me_lasts_longer(auth_service, fixed_now):
    short = auth_service.login("admin", "secret123", now=fixed_now)
    long = auth_service.login("admin", "secret123", remember_me=True, now=fixed_now)

    assert long.expires_at - fixed_now == timedelta(days=30)
    assert long.expires_at > short.expires_at
    assert long.token != short.token


def test_remember_me_is_capped_by_max_token_ttl(accounts, resolver, registry, fixed_now):
    service = AuthService(
        accounts,
        resolver,
        TokenService(JWT_SECRET, max_ttl=timedelta(days=7)),
        registry,
        session_ttl=timedelta(hours=24),
        remember_me_ttl=timedelta(days=30),
        refresh_window=timedelta(hours=2),
    )

    result = service.login("admin", "secret123", remember_me=True, now=fixed_now)

    assert result.expires_at == fixed_now + timedelta(days=7)
    assert result.session.expires_at == result.expires_at


def test_authenticate_request_returns_principal(auth_service, fixed_now):
    token = auth_service.login("admin", "secret123", now=fixed_now).token

    principal = auth_service.authenticate_request(token, now=fixed_now + timedelta(hours=1))

    assert principal.canonical_id == "emp_001"
    assert principal.role == Role.ADMIN
    assert principal.identity.department == "IT"


def test_token_rejected_after_logout(auth_service, fixed_now):
    token = auth_service.login("admin", "secret123", now=fixed_now).token

    auth_service.logout_token(token, now=fixed_now + timedelta(minutes=1))
    auth_service.logout_token(token, now=fixed_now + timedelta(minutes=2))

    with pytest.raises(SessionRevokedError):
        auth_service.authenticate_request(token, now=fixed_now + timedelta(minutes=3))


def test_logout_all_ends_every_device(auth_service, fixed_now):
    t1 = auth_service.login("admin", "secret123", now=fixed_now).token
    t2 = auth_service.login("admin", "secret123", now=fixed_now).token
    other = auth_service.login("nguyenvana", "staff123", now=fixed_now).token

    assert auth_service.logout_all("emp_001", now=fixed_now) == 2

    for token in (t1, t2):
        with pytest.raises(SessionRevokedError):
            auth_service.authenticate_request(token, now=fixed_now)
    assert auth_service.authenticate_request(other, now=fixed_now).canonical_id == "emp_002"


def test_expired_token_is_rejected(auth_service, fixed_now):
    result = auth_service.login("admin", "secret123", now=fixed_now)

    with pytest.raises(TokenExpiredError):
        auth_service.authenticate_request(result.token, now=result.expires_at)


def test_garbage_token_is_rejected(auth_service, fixed_now):
    with pytest.raises(InvalidTokenError):
        auth_service.authenticate_request("garbage", now=fixed_now)


def test_valid_token_without_session_is_rejected(auth_service, resolver, tokens, fixed_now):
    identity = resolver.resolve("admin")
    issued = tokens.issue(identity, Role.ADMIN, timedelta(hours=1), now=fixed_now)

    with pytest.raises(SessionRevokedError):
        auth_service.authenticate_request(issued.token, now=fixed_now)


def test_deactivated_account_loses_access(auth_service, accounts, fixed_now):
    token = auth_service.login("nguyenvana", "staff123", now=fixed_now).token

    accounts.set_active("emp_002", is_active=False)

    with pytest.raises(SessionRevokedError):
        auth_service.authenticate_request(token, now=fixed_now)


def test_reused_login_name_does_not_inherit_old_token(auth_service, accounts, fixed_now):
    token = auth_service.login("nguyenvana", "staff123", now=fixed_now).token

    accounts.delete_by_canonical_id("emp_002")
    accounts.add(make_account(canonical_id="emp_050", login_name="nguyenvana", role=Role.EMPLOYEE))

    with pytest.raises(SessionRevokedError):
        auth_service.authenticate_request(token, now=fixed_now)


def test_role_change_applies_to_existing_token(auth_service, accounts, fixed_now):
    token = auth_service.login("nguyenvana", "staff123", now=fixed_now).token
    accounts.add(replace(accounts.by_id["emp_002"], role=Role.MANAGER))

    principal = auth_service.authenticate_request(token, now=fixed_now)

    assert principal.role == Role.MANAGER
    assert principal.claims.role == Role.EMPLOYEE


def test_refresh_outside_window_keeps_token(auth_service, fixed_now):
    result = auth_service.login("admin", "secret123", now=fixed_now)

    refreshed = auth_service.refresh(result.token, now=fixed_now + timedelta(hours=1))

    assert not refreshed.needs_refresh
    assert refreshed.token is None
    assert refreshed.time_until_expiry == timedelta(hours=23)
    auth_service.authenticate_request(result.token, now=fixed_now + timedelta(hours=1))


def test_refresh_inside_window_rotates_session(auth_service, fixed_now):
    result = auth_service.login("admin", "secret123", client_metadata={"ua": "ff"}, now=fixed_now)
    later = fixed_now + timedelta(hours=23)

    refreshed = auth_service.refresh(result.token, now=later)

    assert refreshed.needs_refresh
    assert refreshed.token and refreshed.token != result.token
    assert refreshed.expires_at == later + timedelta(hours=24)
    with pytest.raises(SessionRevokedError):
        auth_service.authenticate_request(result.token, now=later)
    principal = auth_service.authenticate_request(refreshed.token, now=later)
    assert principal.session.client_metadata == {"ua": "ff"}


def test_refresh_of_revoked_session_fails(auth_service, fixed_now):
    result = auth_service.login("admin", "secret123", now=fixed_now)
    auth_service.logout(result.session.token_fingerprint, now=fixed_now)

    with pytest.raises(SessionRevokedError):
        auth_service.refresh(result.token, now=fixed_now + timedelta(hours=23))


def test_session_and_token_share_fractional_expiry(auth_service, fixed_now):
    issued_at = fixed_now + timedelta(microseconds=700_000)

    result = auth_service.login("admin", "secret123", now=issued_at)

    assert result.expires_at == issued_at + timedelta(hours=24)
    assert result.session.expires_at == result.expires_at
    last_moment = result.expires_at - timedelta(milliseconds=10)
    assert auth_service.authenticate_request(result.token, now=last_moment).canonical_id == "emp_001"
    with pytest.raises(TokenExpiredError):
        auth_service.authenticate_request(result.token, now=result.expires_at + timedelta(milliseconds=10))


def test_employee_lists_only_own_sessions(auth_service, fixed_now):
    own = auth_service.login("nguyenvana", "staff123", now=fixed_now)
    auth_service.login("admin", "secret123", now=fixed_now)
    principal = auth_service.authenticate_request(own.token, now=fixed_now)

    sessions = auth_service.list_sessions(principal, "emp_002", now=fixed_now)

    assert [s.session_id for s in sessions] == [own.session.session_id]
    with pytest.raises(AuthorizationError):
        auth_service.list_sessions(principal, "emp_001", now=fixed_now)


def test_admin_lists_any_identity_including_ended(auth_service, fixed_now):
    employee = auth_service.login("nguyenvana", "staff123", now=fixed_now)
    auth_service.logout_token(employee.token, now=fixed_now + timedelta(minutes=1))
    admin = auth_service.authenticate_request(auth_service.login("admin", "secret123", now=fixed_now).token, now=fixed_now)

    assert auth_service.list_sessions(admin, "emp_002", now=fixed_now + timedelta(minutes=2)) == []
    history = auth_service.list_sessions(admin, "emp_002", active_only=False, now=fixed_now + timedelta(minutes=2))
    assert [s.session_id for s in history] == [employee.session.session_id]
    assert not history[0].is_active
