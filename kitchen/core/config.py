import os

from dotenv import load_dotenv

# .env at the project root, when present
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./kitchen.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.strip().lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

# Identity provider tokens (JWT)
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET", "")
AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "").strip() or None
AUTH_JWT_ISSUER = os.getenv("AUTH_JWT_ISSUER", "").strip() or None
AUTH_DISABLED = _env_flag("AUTH_DISABLED") and not IS_PROD

# Reports / lifecycle
ORDER_HISTORY_LIMIT = int(os.getenv("ORDER_HISTORY_LIMIT", "50"))
TOP_N_LIMIT = int(os.getenv("TOP_N_LIMIT", "10"))
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))

# Calendar used for "today" and week windows; storage stays UTC
TIMEZONE = os.getenv("TIMEZONE", "UTC")
