"""Example: drive the identity services directly (no Flask).

Logs in a demo account, authenticates the token like a protected endpoint
would, then logs out. Run ``scripts/init_db.py`` and ``scripts/seed_db.py``
first.
"""

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from hr_identity.container import auth_settings_from, build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, auth_settings=auth_settings_from(settings))
    auth = container.auth_service

    result = auth.login("admin", "admin123", client_metadata={"user_agent": "example_usage"})
    print("identity:", result.identity.to_dict())
    print("expires at:", result.expires_at.isoformat())

    principal = auth.authenticate_request(result.token)
    print("authenticated as:", principal.canonical_id, principal.role.value)

    auth.logout_token(result.token)
    print("live after logout:", container.session_registry.is_live(result.session.token_fingerprint))


if __name__ == "__main__":
    main()
