"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional, Union
import os

from meetstake.core import constants


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Database - Support both full URL and individual components
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: Optional[str] = None
    POSTGRES_DB: Optional[str] = None

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ADMIN_PASSWORD: str = "adminpass"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = constants.ACCESS_TOKEN_EXPIRE_MINUTES

    # CORS - Can be a list or comma-separated string
    CORS_ORIGINS: Union[list, str] = ["*"]  # In production, specify your domain

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    # Application
    APP_TITLE: str = "MeetStake Ledger"
    APP_DESCRIPTION: str = "Stake-to-attend ledger and settlement engine for calendar meetings"
    APP_VERSION: str = "1.0.0"

    # Environment
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    # Staking policy
    STAKING_DEADLINE_MINUTES: int = constants.STAKING_DEADLINE_MINUTES
    CHECK_IN_GRACE_MINUTES: int = constants.CHECK_IN_GRACE_MINUTES

    # Attendance codes
    ATTENDANCE_CODE_LENGTH: int = constants.ATTENDANCE_CODE_LENGTH
    ATTENDANCE_CODE_ALPHABET: str = constants.ATTENDANCE_CODE_ALPHABET
    ALLOW_CODE_REGENERATION: bool = False  # Organizer may overwrite a shared code

    # Only enable behind a reverse proxy that sets X-Forwarded-For
    TRUST_PROXY_HEADERS: bool = False

    # Database Connection Pool Configuration (ignored for SQLite)
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @field_validator('ATTENDANCE_CODE_LENGTH')
    @classmethod
    def validate_code_length(cls, v: int) -> int:
        if not 4 <= v <= constants.MAX_ATTENDANCE_CODE_LENGTH:
            raise ValueError(
                f"ATTENDANCE_CODE_LENGTH must be between 4 and {constants.MAX_ATTENDANCE_CODE_LENGTH}"
            )
        return v

    @field_validator('ATTENDANCE_CODE_ALPHABET')
    @classmethod
    def validate_code_alphabet(cls, v: str) -> str:
        """Codes are compared case-insensitively, so the alphabet must be upper-case."""
        v = v.strip()
        if len(set(v)) < 10:
            raise ValueError("ATTENDANCE_CODE_ALPHABET must contain at least 10 distinct characters")
        if v != v.upper() or not v.isalnum():
            raise ValueError("ATTENDANCE_CODE_ALPHABET must be upper-case alphanumeric")
        return v

    def get_database_url(self) -> str:
        """
        Get database URL from either DATABASE_URL or individual components.
        Priority: DATABASE_URL > individual components > default (dev only)
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # Build from individual components if provided
        if all([self.POSTGRES_USER, self.POSTGRES_PASSWORD,
                self.POSTGRES_HOST, self.POSTGRES_DB]):
            port = self.POSTGRES_PORT or "5432"
            return (
                f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_HOST}:{port}/{self.POSTGRES_DB}"
            )

        # Development fallback only
        if self.ENVIRONMENT in ("development", "testing"):
            return "sqlite:///./meetstake.db"

        # Production should always provide database credentials
        raise ValueError(
            "Database configuration missing. Provide either DATABASE_URL or "
            "all of: POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_DB"
        )

    def validate_production_config(self) -> None:
        """Validate that production-critical settings are properly configured."""
        if self.ENVIRONMENT == "production":
            issues = []

            if self.SECRET_KEY == "your-secret-key-change-in-production":
                issues.append("SECRET_KEY must be changed from default value")

            if self.ADMIN_PASSWORD == "adminpass":
                issues.append("ADMIN_PASSWORD must be changed from default value")

            if self.CORS_ORIGINS == ["*"]:
                issues.append("CORS_ORIGINS should be restricted to specific domains")

            if self.get_database_url().startswith("sqlite"):
                issues.append("DATABASE_URL must point at a server database in production")

            if issues:
                raise ValueError(
                    "Production configuration errors:\n" +
                    "\n".join(f"  - {issue}" for issue in issues)
                )


settings = Settings()

# Validate production configuration on startup
if os.getenv("ENVIRONMENT") == "production":
    settings.validate_production_config()
