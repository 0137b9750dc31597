"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "Worktrail"
    debug: bool = False
    frontend_url: str = ""  # CORS origin; empty = allow all

    # Database (postgresql+psycopg for psycopg3; sqlite:/// accepted for dev/tests)
    database_url: str = "postgresql+psycopg://localhost:5432/worktrail_dev"
    db_connect_timeout: int = 10  # seconds

    # Security
    secret_key: str = ""
    access_token_expire_hours: int = 24

    # Idempotency cache: records older than this are treated as absent
    idempotency_ttl_hours: int = 24

    # Audit log query paging
    audit_log_default_limit: int = 50
    audit_log_max_limit: int = 200

    # Documents expiring within this many days are reported as EXPIRING
    expiring_documents_days: int = 30

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.frontend_url = os.getenv("FRONTEND_URL", "").strip()

        default_user = os.getenv("PGUSER") or os.getenv("USER") or "postgres"
        default_url = (
            f"postgresql+psycopg://{default_user}:"
            f"{os.getenv('PGPASSWORD', '')}@"
            f"{os.getenv('PGHOST', 'localhost')}:"
            f"{os.getenv('PGPORT', '5432')}/"
            f"{os.getenv('PGDATABASE', 'worktrail_dev')}"
        )
        raw_url = os.getenv("DATABASE_URL", default_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.secret_key = os.getenv("SECRET_KEY", "")
        self.access_token_expire_hours = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", str(self.access_token_expire_hours))
        )

        self.idempotency_ttl_hours = int(
            os.getenv("IDEMPOTENCY_TTL_HOURS", str(self.idempotency_ttl_hours))
        )
        self.audit_log_default_limit = int(
            os.getenv("AUDIT_LOG_DEFAULT_LIMIT", str(self.audit_log_default_limit))
        )
        self.audit_log_max_limit = int(
            os.getenv("AUDIT_LOG_MAX_LIMIT", str(self.audit_log_max_limit))
        )
        self.expiring_documents_days = int(
            os.getenv("EXPIRING_DOCUMENTS_DAYS", str(self.expiring_documents_days))
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")
