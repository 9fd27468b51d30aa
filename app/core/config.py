import os
from dotenv import load_dotenv
from loguru import logger

load_dotenv()

def _get_env(key: str, default: str | None = None) -> str:
    val = os.getenv(key, default)
    if val is None:
        raise RuntimeError(f"Missing required env var: {key}")
    return val

def _get_bool(key: str, default: str = "false") -> bool:
    return _get_env(key, default).lower() in ("1", "true", "yes")

APP_ENV = _get_env("APP_ENV", "local")
DATABASE_URL = _get_env("DATABASE_URL", "sqlite+aiosqlite:///./media_tracker.db")
LOG_LEVEL = _get_env("LOG_LEVEL", "DEBUG")
LOG_FILE = _get_env("LOG_FILE", "logs/app.log")
SQL_DEBUG = _get_bool("SQL_DEBUG")
HOST = _get_env("HOST", "0.0.0.0")
PORT = int(_get_env("PORT", "8000"))

JWT_SECRET = _get_env("JWT_SECRET", "default-secret-key")
JWT_ALGORITHM = _get_env("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(_get_env("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))

BCRYPT_ROUNDS = int(_get_env("BCRYPT_ROUNDS", "10"))
MIN_PASSWORD_LENGTH = 6

# Demo mode: media routes work without a token, scoped to a fixed user
DEMO_MODE = _get_bool("DEMO_MODE")
DEMO_USER_ID = _get_env("DEMO_USER_ID", "demo-user-001")
DEMO_USERNAME = _get_env("DEMO_USERNAME", "demo")
DEMO_EMAIL = _get_env("DEMO_EMAIL", "demo@example.com")

logger.debug(f"Config loaded: APP_ENV={APP_ENV}, DATABASE_URL={DATABASE_URL}, LOG_LEVEL={LOG_LEVEL}, DEMO_MODE={DEMO_MODE}")
