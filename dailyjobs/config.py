"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Daily jobs configuration. All values come from environment variables."""

    # Scheduler (shared by every job)
    scheduler_timezone: str = Field(default="Asia/Jakarta")
    scheduler_timezone_label: str = Field(default="WIB")
    autostart_schedulers: bool = Field(default=True)

    # Currency rate fetch job
    currency_enabled: bool = Field(default=True)
    currency_scheduled_hour: int = Field(default=23, ge=0, le=23)
    currency_scheduled_minute: int = Field(default=0, ge=0, le=59)
    currency_retry_interval_minutes: float = Field(default=5, gt=0)
    currency_cutoff_hour: int = Field(default=0, ge=0, le=23)
    currency_execute_timeout_seconds: float | None = Field(default=None, gt=0)

    # HPP Actual cost calculation job
    hpp_enabled: bool = Field(default=True)
    hpp_scheduled_hour: int = Field(default=22, ge=0, le=23)
    hpp_scheduled_minute: int = Field(default=0, ge=0, le=59)
    hpp_retry_interval_minutes: float = Field(default=10, gt=0)
    hpp_cutoff_hour: int = Field(default=0, ge=0, le=23)
    hpp_execute_timeout_seconds: float | None = Field(default=None, gt=0)
    # "package.module:function" resolving to the async period calculator
    hpp_calculator: str = Field(default="")

    # Frankfurter exchange-rate API
    frankfurter_api_url: str = Field(default="https://api.frankfurter.app")
    currency_api_delay_seconds: float = Field(default=0.5, ge=0)
    currency_request_timeout_seconds: float = Field(default=30, gt=0)

    # Database
    database_path: Path = Field(default=Path("data/dailyjobs.db"))

    # HTTP control surface
    http_host: str = Field(default="0.0.0.0")
    http_port: int = Field(default=8080)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()
