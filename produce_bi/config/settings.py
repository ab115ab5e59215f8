"""
Produce BI Core
Centralized Configuration Management

Pydantic settings with environment variable support for the aggregation
and scoring engines. Scoring weights and divisors are kept here rather than
in the formulas so they can be retuned per dataset.
"""

from datetime import date
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AggregationSettings(BaseSettings):
    """Time bucketing and dashboard aggregation configuration"""

    model_config = SettingsConfigDict(env_prefix="AGGREGATION_")

    default_epoch: date = Field(default=date(2023, 1, 1), description="Lower date bound when none is given")
    waste_epoch: date = Field(default=date(2024, 1, 1), description="Lower date bound for waste records")
    week_start: str = Field(default="sunday", description="First day of a week bucket: sunday or monday")
    outstanding_ratio: float = Field(default=0.15, description="Share of revenue reported as outstanding")
    top_n: int = Field(default=5, description="Rows kept in favourite product / top customer lists")

    @field_validator("week_start")
    @classmethod
    def validate_week_start(cls, v: str) -> str:
        """Validate week start day"""
        allowed = ["sunday", "monday"]
        if v.lower() not in allowed:
            raise ValueError(f"Week start must be one of: {allowed}")
        return v.lower()


class ScoringSettings(BaseSettings):
    """Weighted-sum scoring model configuration"""

    model_config = SettingsConfigDict(env_prefix="SCORING_")

    # Tier thresholds
    tier_a_threshold: int = Field(default=80, description="Minimum score for tier A")
    tier_b_threshold: int = Field(default=60, description="Minimum score for tier B")

    # Customer model
    customer_revenue_weight: float = Field(default=40.0)
    customer_revenue_divisor: float = Field(default=50000.0)
    customer_frequency_weight: float = Field(default=25.0)
    customer_frequency_divisor: float = Field(default=365.0)
    customer_recency_weight: float = Field(default=20.0)
    customer_recency_window_days: float = Field(default=30.0)
    customer_margin_weight: float = Field(default=15.0)
    customer_margin_divisor: float = Field(default=50.0)

    # Product model
    product_revenue_weight: float = Field(default=35.0)
    product_revenue_divisor: float = Field(default=20000.0)
    product_velocity_weight: float = Field(default=25.0)
    product_velocity_divisor: float = Field(default=10.0)
    product_margin_weight: float = Field(default=25.0)
    product_margin_divisor: float = Field(default=50.0)
    product_frequency_weight: float = Field(default=15.0)
    product_frequency_divisor: float = Field(default=200.0)


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")
    log_file: Optional[str] = Field(default=None, description="Log file path")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="produce-bi", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
