from __future__ import annotations

from typing import Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    commission_per_unit: float = Field(
        default=0.0, ge=0, description="Global commission per unit; 0 uses each trade's own commission"
    )
    max_drawdown_goal: float = Field(
        default=0.0, ge=0, description="Maximum acceptable drawdown used by the quality score; 0 = unset"
    )
    timezone: str = Field(default="America/New_York", description="Reporting timezone for calendar buckets")
    default_timeframe: str = Field(default="day", description="Default period granularity: day / week / month")
    contract_multipliers: Dict[str, float] = Field(
        default_factory=dict, description="Extra contract roots and their point values"
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="", description="Optional log file path")

    model_config = {"env_prefix": "JOURNAL_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        return value

    @field_validator("default_timeframe")
    @classmethod
    def _known_timeframe(cls, value: str) -> str:
        value = value.lower()
        if value not in ("day", "week", "month"):
            raise ValueError(f"unknown timeframe: {value}")
        return value


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    global _settings
    _settings = Settings()
    return _settings
