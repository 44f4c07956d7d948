"""Application configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    PROJECT_NAME: str = "PUREIOT Support API"
    VERSION: str = "2.0.0"
    DEBUG: bool = False
    PORT: int = 3001

    # URLs
    # WHY: Links in staff emails point back at this service's update form
    BASE_URL: Optional[str] = None

    # Local ticket store
    STORAGE_BACKEND: str = "file"  # "file" or "memory"
    TICKETS_FILE: str = "tickets.json"

    # Support desk
    SUPPORT_EMAIL: str = "support@piot.co.za"
    SUPPORT_TEAM_NAME: str = "PUREIOT Support Team"

    # Email
    EMAIL_PROVIDER: Optional[str] = None  # "resend", "smtp" or "mock"; auto-detected when unset
    EMAIL_FROM: Optional[str] = None
    RESEND_API_KEY: Optional[str] = None
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None

    # External ticket store (hosted Postgres)
    EXTERNAL_DATABASE_URL: Optional[str] = None

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    @property
    def base_url(self) -> str:
        """Base URL for links in emails, without a trailing slash."""
        if self.BASE_URL:
            return self.BASE_URL.rstrip("/")
        return f"http://localhost:{self.PORT}"

    @property
    def smtp_configured(self) -> bool:
        """SMTP needs both credentials; the host has a default."""
        return all([self.SMTP_USER, self.SMTP_PASS])

    @property
    def external_store_enabled(self) -> bool:
        """Check if the hosted ticket database is configured."""
        return bool(self.EXTERNAL_DATABASE_URL)

    @property
    def async_external_database_url(self) -> Optional[str]:
        """Get async external database URL"""
        if not self.EXTERNAL_DATABASE_URL:
            return None
        return self.EXTERNAL_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


settings = Settings()
