from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
from pathlib import Path


class Settings(BaseSettings):
    """Client settings - all configurable via ORDERDESK_* environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="ORDERDESK_",
        env_file=".env",
        extra="ignore",
    )

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "OrderDesk"
    ENVIRONMENT: str = "development"

    # ==========================================
    # Gateway
    # ==========================================
    API_BASE_URL: str = "http://localhost:8080"
    ACCESS_TOKEN: str = ""
    REQUEST_TIMEOUT: Optional[float] = None  # None means no deadline

    # ==========================================
    # Identity provider (token is obtained outside this client)
    # ==========================================
    KEYCLOAK_URL: str = "http://localhost:8180"
    KEYCLOAK_REALM: str = "microservices"
    KEYCLOAK_CLIENT_ID: str = "frontend-client"

    # ==========================================
    # Downloads
    # ==========================================
    DOWNLOAD_DIR: str = str(Path.home() / "Downloads" / "orderdesk")
    STAGING_DIR: Optional[str] = None  # system temp dir when unset

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("REQUEST_TIMEOUT", mode="before")
    @classmethod
    def empty_timeout_is_none(cls, v):
        if v in ("", "0", 0, None):
            return None
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


def get_settings() -> Settings:
    """Build a fresh Settings instance (reads the environment again)"""
    return Settings()


settings = Settings()
