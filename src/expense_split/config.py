"""Configuration management for expense-split."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_SPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Validation tolerances
    split_tolerance: Decimal = Decimal("0.01")  # one cent
    percentage_tolerance: Decimal = Decimal("0.5")  # on the 0-100 scale

    # Category used when the form leaves it blank
    default_category: str = "Other"


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the EXPENSE_SPLIT_* variables in "
            f"your environment or .env file.\n"
            f"Error: {e}"
        ) from e
