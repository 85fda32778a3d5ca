from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .accounts.mysql_account_repository import MySQLAccountRepository
from .accounts.mysql_profile_repository import MySQLProfileRepository
from .accounts.service import AccountService
from .auth.service import AuthService
from .core.constants import (
    DEFAULT_KEY_PREFIXES,
    DEFAULT_KEY_SEPARATORS,
    DEFAULT_MAX_TOKEN_DAYS,
    DEFAULT_REFRESH_WINDOW_HOURS,
    DEFAULT_REMEMBER_ME_DAYS,
    DEFAULT_SESSION_HOURS,
    DEFAULT_SWEEP_INTERVAL_MINUTES,
)
from .database.connection import DBConfig, DatabaseConnection
from .identity.normalization import KeyNormalizer
from .identity.resolver import IdentityResolver
from .sessions.maintenance import SessionMaintenance
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.service import SessionRegistry
from .tokens.service import TokenService


@dataclass(frozen=True)
class AuthSettings:
    """Snapshot of token/session settings taken from the settings module."""

    jwt_secret: str
    session_ttl: timedelta = timedelta(hours=DEFAULT_SESSION_HOURS)
    remember_me_ttl: timedelta = timedelta(days=DEFAULT_REMEMBER_ME_DAYS)
    max_token_ttl: timedelta = timedelta(days=DEFAULT_MAX_TOKEN_DAYS)
    refresh_window: timedelta = timedelta(hours=DEFAULT_REFRESH_WINDOW_HOURS)
    sweep_interval: timedelta = timedelta(minutes=DEFAULT_SWEEP_INTERVAL_MINUTES)
    key_separators: tuple[str, ...] = DEFAULT_KEY_SEPARATORS
    key_prefixes: tuple[str, ...] = DEFAULT_KEY_PREFIXES


def auth_settings_from(settings) -> AuthSettings:
    return AuthSettings(
        jwt_secret=str(getattr(settings, "JWT_SECRET")),
        session_ttl=timedelta(hours=float(getattr(settings, "SESSION_TTL_HOURS", DEFAULT_SESSION_HOURS))),
        remember_me_ttl=timedelta(days=float(getattr(settings, "REMEMBER_ME_TTL_DAYS", DEFAULT_REMEMBER_ME_DAYS))),
        max_token_ttl=timedelta(days=float(getattr(settings, "MAX_TOKEN_TTL_DAYS", DEFAULT_MAX_TOKEN_DAYS))),
        refresh_window=timedelta(hours=float(getattr(settings, "REFRESH_WINDOW_HOURS", DEFAULT_REFRESH_WINDOW_HOURS))),
        sweep_interval=timedelta(
            minutes=float(getattr(settings, "SESSION_SWEEP_INTERVAL_MINUTES", DEFAULT_SWEEP_INTERVAL_MINUTES))
        ),
        key_separators=tuple(getattr(settings, "IDENTITY_KEY_SEPARATORS", DEFAULT_KEY_SEPARATORS)),
        key_prefixes=tuple(getattr(settings, "IDENTITY_KEY_PREFIXES", DEFAULT_KEY_PREFIXES)),
    )


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    accounts_repo: MySQLAccountRepository
    profiles_repo: MySQLProfileRepository
    sessions_repo: MySQLSessionRepository

    resolver: IdentityResolver
    token_service: TokenService
    session_registry: SessionRegistry
    session_maintenance: SessionMaintenance
    account_service: AccountService
    auth_service: AuthService


def build_container(*, db_config: dict, auth_settings: AuthSettings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    normalizer = KeyNormalizer(separators=auth_settings.key_separators, prefixes=auth_settings.key_prefixes)

    accounts_repo = MySQLAccountRepository(conn)
    profiles_repo = MySQLProfileRepository(conn, separators=normalizer.separators)
    sessions_repo = MySQLSessionRepository(conn)

    resolver = IdentityResolver(accounts_repo, profiles_repo, normalizer)
    token_service = TokenService(auth_settings.jwt_secret, max_ttl=auth_settings.max_token_ttl)
    session_registry = SessionRegistry(sessions_repo)
    session_maintenance = SessionMaintenance(session_registry, interval=auth_settings.sweep_interval)
    account_service = AccountService(accounts_repo, session_registry)
    auth_service = AuthService(
        accounts_repo,
        resolver,
        token_service,
        session_registry,
        session_ttl=auth_settings.session_ttl,
        remember_me_ttl=auth_settings.remember_me_ttl,
        refresh_window=auth_settings.refresh_window,
    )

    return Container(
        conn=conn,
        accounts_repo=accounts_repo,
        profiles_repo=profiles_repo,
        sessions_repo=sessions_repo,
        resolver=resolver,
        token_service=token_service,
        session_registry=session_registry,
        session_maintenance=session_maintenance,
        account_service=account_service,
        auth_service=auth_service,
    )
