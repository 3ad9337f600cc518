# salonbook/config.py

import os
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

env_file_path = os.getenv("ENV_FILE", ".env")
load_dotenv(env_file_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=env_file_path,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App Settings
    APP_NAME: str = "Salon Booking"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./salon.db"

    # Scheduling
    BUSINESS_TIMEZONE: str = "Asia/Singapore"
    SLOT_MINUTES: int = 30
    MIN_BOOKING_NOTICE_MINUTES: int = 60
    BOOKING_LOCK_TIMEOUT_SECONDS: float = 3.0

    @field_validator("BUSINESS_TIMEZONE")
    @classmethod
    def known_timezone(cls, value):
        ZoneInfo(value)  # raises for unknown zones
        return value

    @field_validator("SLOT_MINUTES")
    @classmethod
    def sane_granularity(cls, value):
        if not (5 <= value <= 240):
            raise ValueError("SLOT_MINUTES must be between 5 and 240")
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.BUSINESS_TIMEZONE)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


settings = get_settings()
