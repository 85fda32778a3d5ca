import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; anything unknown means development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def env_list(name: str, default: tuple) -> tuple:
    """Comma separated env var -> tuple. An empty value means an empty tuple."""
    raw = os.getenv(name)
    if raw is None:
        return tuple(default)
    return tuple(part for part in raw.split(",") if part)
