from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SUBMIT_URL = "https://weatherstation.wunderground.com/weatherstation/updateweatherstation.php"
SIGNALK_URL = "ws://localhost:3000/signalk/v1/stream?subscribe=none"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    station_id: str = ""
    password: str = ""
    submit_interval: float = Field(default=5, gt=0)  # minutes
    station_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    station_lon: Optional[float] = Field(default=None, ge=-180, le=180)
    submit_url: str = SUBMIT_URL
    signalk_url: str = SIGNALK_URL
    port: int = 8001
    log_file: str = "logs/signalk_wunderground.log"


def load_config(**overrides) -> Config:
    return Config(**overrides)
