"""Mark expired sessions inactive.

Runs once by default; ``--interval MINUTES`` keeps it running like the
in-app maintenance thread (Ctrl+C to stop).
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
import time
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from hr_identity.container import auth_settings_from, build_container
from hr_identity.main import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--interval", type=float, default=0, help="repeat every N minutes")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG), auth_settings=auth_settings_from(settings))

    while True:
        stats = container.session_maintenance.run_once()
        if stats is not None:
            print(f"OK: sessions total={stats.total} live={stats.live} identities={stats.identities}")
        if args.interval <= 0:
            break
        try:
            time.sleep(args.interval * 60)
        except KeyboardInterrupt:
            logging.getLogger(__name__).info("stopped")
            break


if __name__ == "__main__":
    main()
