"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EstimatorSettings(BaseSettings):
    """Outlier rejection, reset and fusion parameters."""

    model_config = SettingsConfigDict(env_prefix="ESTIMATOR_")

    distance_threshold: float = Field(default=1.0, gt=0.0)
    rejection_limit: int = Field(default=10, ge=0)
    weight: float = Field(default=0.1, gt=0.0, lt=1.0)
    fusion: Literal["replace", "weighted"] = "weighted"
    reset_on_rejections: bool = True


class DriveSettings(BaseSettings):
    """Drivetrain geometry and control loop timing."""

    model_config = SettingsConfigDict(env_prefix="DRIVE_")

    track_width_m: float = Field(default=0.6, gt=0.0)
    control_period_s: float = Field(default=0.02, gt=0.0)


class VisionSettings(BaseSettings):
    """Vision sample conversion and landmark map settings."""

    model_config = SettingsConfigDict(env_prefix="VISION_")

    field_offset_x: float = 8.27
    field_offset_y: float = 4.1
    reference_map_path: str | None = None


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    file: str | None = None


class Settings(BaseSettings):
    """Root settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    estimator: EstimatorSettings = Field(default_factory=EstimatorSettings)
    drive: DriveSettings = Field(default_factory=DriveSettings)
    vision: VisionSettings = Field(default_factory=VisionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings instance."""
    return Settings()
