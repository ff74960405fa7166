import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "https://georgiagapp.com",
    "https://www.georgiagapp.com",
]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Runtime configuration, built once at startup and passed to handlers and jobs"""

    environment: str = "development"
    database_url: str = "sqlite:///./gapp.db"

    # Public site
    base_url: str = "https://www.georgiagapp.com"
    allowed_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))

    # Secrets
    admin_password: Optional[str] = None
    cron_secret: Optional[str] = None
    whop_webhook_secret: Optional[str] = None
    whop_verified_product_id: Optional[str] = None
    whop_premium_product_id: Optional[str] = None

    # Email (Resend)
    resend_api_key: Optional[str] = None
    email_from_address: str = "GAPP <noreply@georgiagapp.com>"
    leads_from_address: str = "GAPP Leads <leads@georgiagapp.com>"
    admin_email: str = "help@georgiagapp.com"

    # Redis / rate limiting
    redis_url: Optional[str] = None
    rate_limit_enabled: bool = True
    # Peers whose X-Forwarded-For header is believed, e.g. the load balancer
    trusted_proxies: List[str] = Field(default_factory=list)
    security_headers_enabled: bool = True

    # Availability workflow
    availability_ping_cooldown_hours: int = 20

    # Database pool
    db_pool_size: int = 20
    db_max_overflow: int = 30
    db_pool_timeout: int = 30
    db_pool_recycle: int = 300
    db_log_slow_queries: bool = True
    db_slow_query_threshold: float = 1.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=ENVIRONMENT,
            database_url=os.getenv("DATABASE_URL", "sqlite:///./gapp.db"),
            base_url=os.getenv("BASE_URL", "https://www.georgiagapp.com").rstrip("/"),
            allowed_origins=_env_list("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS),
            admin_password=os.getenv("ADMIN_PASSWORD"),
            cron_secret=os.getenv("CRON_SECRET"),
            whop_webhook_secret=os.getenv("WHOP_WEBHOOK_SECRET"),
            whop_verified_product_id=os.getenv("WHOP_VERIFIED_PRODUCT_ID"),
            whop_premium_product_id=os.getenv("WHOP_PREMIUM_PRODUCT_ID"),
            resend_api_key=os.getenv("RESEND_API_KEY"),
            email_from_address=os.getenv("EMAIL_FROM_ADDRESS", "GAPP <noreply@georgiagapp.com>"),
            leads_from_address=os.getenv("LEADS_FROM_ADDRESS", "GAPP Leads <leads@georgiagapp.com>"),
            admin_email=os.getenv("ADMIN_EMAIL", "help@georgiagapp.com"),
            redis_url=os.getenv("REDIS_URL"),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            trusted_proxies=_env_list("TRUSTED_PROXIES", []),
            security_headers_enabled=_env_bool("SECURITY_HEADERS_ENABLED", True),
            availability_ping_cooldown_hours=int(os.getenv("AVAILABILITY_PING_COOLDOWN_HOURS", "20")),
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "20")),
            db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "30")),
            db_pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
            db_pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "300")),
            db_log_slow_queries=_env_bool("DB_LOG_SLOW_QUERIES", True),
            db_slow_query_threshold=float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0")),
        )
