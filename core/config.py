"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_RULES_PATH = Path(__file__).parent.parent / "data" / "classification_rules.md"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="Cash Flow Statement Generator", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Storage
    temp_storage_path: str = Field(default="temp", alias="STORAGE_PATH")
    file_retention_seconds: int = Field(default=300, alias="FILE_RETENTION_SECONDS")

    # Classification
    classification_rules_path: str = Field(
        default=str(DEFAULT_RULES_PATH), alias="CLASSIFICATION_RULES_PATH"
    )

    # Balance sheet conversion
    balance_sheet_period_start: str = Field(default="Mar 2025", alias="BALANCE_SHEET_PERIOD_START")
    balance_sheet_period_end: str = Field(default="Jun 2025", alias="BALANCE_SHEET_PERIOD_END")
    balance_sheet_report_date: str = Field(default="2025-06-30", alias="BALANCE_SHEET_REPORT_DATE")

    # Report
    include_cash_balances: bool = Field(default=False, alias="INCLUDE_CASH_BALANCES")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("file_retention_seconds")
    @classmethod
    def validate_retention(cls, v):
        """Validate retention window."""
        if v < 0:
            raise ValueError("File retention must not be negative")
        return v

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        Path(self.temp_storage_path).mkdir(parents=True, exist_ok=True)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.ensure_directories()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
