from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


#  Working modes
class AppEnvironment(str, Enum):
    """Working modes"""
    DEV = "development"
    PROD = "production"
    TEST = "testing"


class SimulatorSettings(BaseSettings):
    """
    Simulator settings.
    Reads configuration from .env file or RACE_SIM_* environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        env_prefix="RACE_SIM_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    env: AppEnvironment = Field(default=AppEnvironment.DEV, alias="APP_ENV")

    # IoT wrapper endpoint
    base_url: str = Field(default="http://localhost:8888", description="IoT wrapper base URL")
    data_path: str = Field(default="/iot/send/data/", description="Path prefix for data events")
    alert_path: str = Field(default="/iot/send/alert/", description="Path prefix for alert events")

    connect_timeout_sec: float = Field(default=1.0, gt=0, description="TCP connect timeout")
    request_timeout_sec: float = Field(default=1.0, gt=0, description="Whole request timeout")

    speed: float = Field(default=1.0, gt=0, description="Replay speed factor, 1.0 keeps recorded timing")


@lru_cache
def get_settings() -> SimulatorSettings:
    """
    Creates and returns a (cached) instance of settings.
    """
    return SimulatorSettings()
