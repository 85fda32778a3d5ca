import os

from config import env_flag, env_list

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
JWT_SECRET = os.getenv("JWT_SECRET", "please-set-JWT_SECRET")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_identity"),
    "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "3")),
}

SESSION_TTL_HOURS = float(os.getenv("SESSION_TTL_HOURS", "24"))
REMEMBER_ME_TTL_DAYS = float(os.getenv("REMEMBER_ME_TTL_DAYS", "30"))
MAX_TOKEN_TTL_DAYS = float(os.getenv("MAX_TOKEN_TTL_DAYS", "30"))
REFRESH_WINDOW_HOURS = float(os.getenv("REFRESH_WINDOW_HOURS", "2"))

IDENTITY_KEY_SEPARATORS = env_list("IDENTITY_KEY_SEPARATORS", ("_", "-", ".", " "))
IDENTITY_KEY_PREFIXES = env_list("IDENTITY_KEY_PREFIXES", ())

SESSION_MAINTENANCE = env_flag("SESSION_MAINTENANCE", "1")
SESSION_SWEEP_INTERVAL_MINUTES = float(os.getenv("SESSION_SWEEP_INTERVAL_MINUTES", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = False

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
