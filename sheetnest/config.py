"""Configuration management for sheetnest."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SHEETNEST_",
        extra="ignore",
    )

    # Stock sheet dimensions (mm)
    sheet_width: float = Field(default=2440.0, gt=0, description="Width of newly created sheets (mm)")
    sheet_height: float = Field(default=1220.0, gt=0, description="Height of newly created sheets (mm)")

    # Spacing
    min_spacing: float = Field(default=5.0, ge=0, description="Clearance between placed boards (mm)")
    min_gap_size: float = Field(default=100.0, gt=0, description="Smallest usable gap side (mm)")

    # Sheet selection
    full_threshold: float = Field(
        default=0.95,
        gt=0,
        le=1,
        description="Utilization at which a sheet stops accepting boards",
    )

    # Nesting options
    allow_rotation: bool = Field(default=True, description="Try all four board rotations")
    create_new_sheets: bool = Field(default=True, description="Create sheets when nothing fits")
    prefer_existing_sheets: bool = Field(default=True, description="Fill fuller sheets first")
    optimize_utilization: bool = Field(default=True, description="Order candidate sheets by utilization")

    # Logging
    log_level: str = Field(default="INFO", description="Log level for the command line")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure(settings: Optional[Settings]) -> None:
    """Override global settings. Passing None resets to environment defaults."""
    global _settings
    _settings = settings
