import os

from config import env_flag, env_list

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret-change-me-0123456789abcdef")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_identity"),
    "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
}

# Token / session lifetimes
SESSION_TTL_HOURS = float(os.getenv("SESSION_TTL_HOURS", "24"))
REMEMBER_ME_TTL_DAYS = float(os.getenv("REMEMBER_ME_TTL_DAYS", "30"))
MAX_TOKEN_TTL_DAYS = float(os.getenv("MAX_TOKEN_TTL_DAYS", "30"))
REFRESH_WINDOW_HOURS = float(os.getenv("REFRESH_WINDOW_HOURS", "2"))

# Key drift between user_accounts.employee_id and employees.employee_code
IDENTITY_KEY_SEPARATORS = env_list("IDENTITY_KEY_SEPARATORS", ("_", "-", ".", " "))
IDENTITY_KEY_PREFIXES = env_list("IDENTITY_KEY_PREFIXES", ())

SESSION_MAINTENANCE = env_flag("SESSION_MAINTENANCE", "1")
SESSION_SWEEP_INTERVAL_MINUTES = float(os.getenv("SESSION_SWEEP_INTERVAL_MINUTES", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also seed demo accounts/profiles on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
