from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from hr_identity.database.bootstrap import DEMO_ACCOUNTS, ensure_demo_accounts


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_accounts(db_config)

    logins = ", ".join(login for _, login, *_ in DEMO_ACCOUNTS)
    print(
        "OK: Seeded demo accounts "
        f"({logins}) -> {db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
