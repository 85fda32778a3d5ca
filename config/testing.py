import os

SECRET_KEY = "test-secret"
JWT_SECRET = "test-jwt-secret-0123456789abcdef0123456789"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_identity_test"),
    "connect_timeout": 2,
}

SESSION_TTL_HOURS = 24
REMEMBER_ME_TTL_DAYS = 30
MAX_TOKEN_TTL_DAYS = 30
REFRESH_WINDOW_HOURS = 2

IDENTITY_KEY_SEPARATORS = ("_", "-", ".", " ")
IDENTITY_KEY_PREFIXES = ()

SESSION_MAINTENANCE = False
SESSION_SWEEP_INTERVAL_MINUTES = 30

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
