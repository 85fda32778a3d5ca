from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_SESSION_LIST_LIMIT
from ..core.enums import Role
from ..core.exceptions import (
    GENERIC_LOGIN_FAILURE,
    AmbiguousIdentityError,
    AuthenticationError,
    AuthorizationError,
    SessionExpiredError,
    StoreUnavailableError,
    ValidationError,
)
from ..container import Container

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 5


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return ""
    return header[len("Bearer "):].strip()


def _client_metadata() -> dict:
    return {
        "user_agent": request.headers.get("User-Agent", ""),
        "ip_address": request.remote_addr or "",
    }


def _session_to_dict(session, now, current_session_id: str) -> dict:
    reason = session.end_reason_at(now)
    return {
        "sessionId": session.session_id,
        "createdAt": session.created_at.isoformat(),
        "expiresAt": session.expires_at.isoformat(),
        "endedAt": session.ended_at.isoformat() if session.ended_at else None,
        "isLive": session.is_live(now),
        "endReason": reason.value if reason else None,
        "current": session.session_id == current_session_id,
        "clientMetadata": session.client_metadata,
    }


def _fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def register(app: Flask, container: Container) -> None:
    @app.errorhandler(StoreUnavailableError)
    def store_unavailable(e):
        resp, status = _fail("Service temporarily unavailable, please retry", 503)
        resp.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
        return resp, status

    @app.errorhandler(AmbiguousIdentityError)
    def ambiguous_identity(e):
        logger.error("data integrity: %s", e)
        return _fail("Account data needs attention, please contact an administrator", 500)

    @app.errorhandler(ValidationError)
    def validation_error(e):
        return _fail(str(e), 400)

    @app.errorhandler(AuthorizationError)
    def authorization_error(e):
        return _fail(str(e), 403)

    @app.errorhandler(AuthenticationError)
    def authentication_error(e):
        return _fail(str(e), 401)

    def token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            if not token:
                return _fail("Access denied. No token provided.", 401)
            try:
                g.principal = container.auth_service.authenticate_request(token)
            except SessionExpiredError as e:
                logger.info("request rejected: %s", type(e).__name__)
                return _fail(str(e), 401)
            g.token = token
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        @token_required
        def wrapper(*args, **kwargs):
            if g.principal.role != Role.ADMIN:
                return _fail("Admin access required", 403)
            return view(*args, **kwargs)

        return wrapper

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = request.get_json(silent=True) or {}
        try:
            result = container.auth_service.login(
                str(body.get("username", "")),
                str(body.get("password", "")),
                remember_me=bool(body.get("rememberMe", False)),
                client_metadata=_client_metadata(),
            )
        except AuthenticationError:
            return _fail(GENERIC_LOGIN_FAILURE, 401)

        return jsonify(
            {
                "success": True,
                "message": "Login successful",
                "data": {
                    "user": result.identity.to_dict(),
                    "token": result.token,
                    "expiresAt": result.expires_at.isoformat(),
                },
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        # no guard: an expired token must still be able to end its session
        container.auth_service.logout_token(_bearer_token())
        return jsonify({"success": True, "message": "Logged out successfully"})

    @app.route("/api/auth/logout-all", methods=["POST"], endpoint="logout_all")
    @token_required
    def logout_all():
        container.auth_service.logout_all(g.principal.canonical_id)
        return jsonify({"success": True, "message": "Logged out from all devices successfully"})

    @app.route("/api/auth/verify", methods=["GET"], endpoint="verify")
    @token_required
    def verify():
        return jsonify({"success": True, "message": "Token valid", "data": {"user": g.principal.identity.to_dict()}})

    @app.route("/api/auth/refresh", methods=["POST"], endpoint="refresh")
    @token_required
    def refresh():
        body = request.get_json(silent=True) or {}
        result = container.auth_service.refresh(
            g.token,
            remember_me=bool(body.get("rememberMe", False)),
            client_metadata=_client_metadata(),
        )
        data = {
            "needsRefresh": result.needs_refresh,
            "expiresAt": result.expires_at.isoformat(),
            "timeUntilExpiry": int(result.time_until_expiry.total_seconds()),
        }
        if result.token:
            data["token"] = result.token
        return jsonify({"success": True, "data": data})

    @app.route("/api/auth/change-password", methods=["POST"], endpoint="change_password")
    @token_required
    def change_password():
        body = request.get_json(silent=True) or {}
        container.account_service.change_password(
            g.principal.canonical_id,
            current_password=str(body.get("currentPassword", "")),
            new_password=str(body.get("newPassword", "")),
            keep_fingerprint=g.principal.session.token_fingerprint,
        )
        return jsonify({"success": True, "message": "Password changed successfully"})

    @app.route("/api/admin/accounts/<canonical_id>/deactivate", methods=["POST"], endpoint="deactivate_account")
    @admin_required
    def deactivate_account(canonical_id: str):
        revoked = container.account_service.deactivate(current_role=g.principal.role, canonical_id=canonical_id)
        return jsonify({"success": True, "data": {"revokedSessions": revoked}})

    @app.route("/api/admin/accounts/<canonical_id>", methods=["DELETE"], endpoint="delete_account")
    @admin_required
    def delete_account(canonical_id: str):
        revoked = container.account_service.delete_account(current_role=g.principal.role, canonical_id=canonical_id)
        return jsonify({"success": True, "data": {"revokedSessions": revoked}})

    @app.route("/api/accounts/<canonical_id>/sessions", methods=["GET"], endpoint="list_sessions")
    @token_required
    def list_sessions(canonical_id: str):
        active_only = request.args.get("active_only", "true").strip().lower() in {"1", "true", "yes"}
        try:
            limit = int(request.args.get("limit", DEFAULT_SESSION_LIST_LIMIT))
        except ValueError as e:
            raise ValidationError("limit must be a number") from e

        now = now_utc()
        sessions = container.auth_service.list_sessions(
            g.principal,
            canonical_id,
            active_only=active_only,
            limit=limit,
            now=now,
        )
        current_id = g.principal.session.session_id
        return jsonify({"success": True, "data": {"sessions": [_session_to_dict(s, now, current_id) for s in sessions]}})
