# Environment-driven settings shared across the API.
# Values are read once at import time; tests set the environment before importing the app.
import os
from typing import Optional


# Basic truthy parser for env flags (1, true, yes, on)
def _truthy(val: Optional[str]) -> bool:
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _to_int(val: Optional[str], default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


def _database_url() -> str:
    """
    Resolve the database connection string.

    Precedence:
    - DATABASE_URL when set
    - discrete PGHOST/PGPORT/PGUSER/PGPASSWORD/PGDATABASE when PGHOST is set
    - local SQLite file at ./data.db
    """
    url = os.getenv("DATABASE_URL")
    if url:
        # Heroku-style URLs use the legacy scheme SQLAlchemy no longer accepts
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+psycopg2://", 1)
        return url

    host = os.getenv("PGHOST")
    if host:
        user = os.getenv("PGUSER", "postgres")
        password = os.getenv("PGPASSWORD", "")
        port = _to_int(os.getenv("PGPORT"), 5432)
        database = os.getenv("PGDATABASE", "estatefinder")
        auth = f"{user}:{password}" if password else user
        return f"postgresql+psycopg2://{auth}@{host}:{port}/{database}"

    return "sqlite:///./data.db"


ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").strip().lower()
IS_PRODUCTION: bool = ENVIRONMENT == "production"

DATABASE_URL: str = _database_url()

# Token signing
JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALG: str = "HS256"
JWT_TTL_SECONDS: int = _to_int(os.getenv("JWT_TTL_SECONDS"), 60 * 60 * 24)  # 1 day

# HTTP server
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = _to_int(os.getenv("PORT"), 3000)
CORS_ORIGINS: Optional[str] = os.getenv("CORS_ORIGINS")
STATIC_DIR: str = os.getenv("STATIC_DIR", "./public")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Outbound email (password reset)
SENDGRID_API_KEY: str = os.getenv("SENDGRID_API_KEY", "").strip()
SENDGRID_FROM_EMAIL: str = os.getenv("SENDGRID_FROM_EMAIL", "no-reply@yourdomain.com")
RESET_BASE_URL: str = os.getenv("RESET_BASE_URL", "http://localhost:3000/reset")
RESET_TOKEN_TTL_HOURS: int = _to_int(os.getenv("RESET_TOKEN_TTL_HOURS"), 2)
