from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Reading(BaseModel):
    path: str
    value: Any
    timestamp: Optional[datetime] = None


class WindowSnapshot(BaseModel):
    """Immutable copy of an aggregation window, ready for encoding"""

    model_config = ConfigDict(frozen=True)

    wind_speed_samples: Tuple[float, ...] = ()
    wind_speed_median: Optional[float] = None
    wind_gust_max: Optional[float] = None
    wind_direction: Optional[int] = None
    dew_point: Optional[float] = None
    temperature: Optional[float] = None
    water_temperature: Optional[float] = None
    pressure: Optional[float] = None
    humidity: Optional[int] = None
    uv: Optional[float] = None
    position: Optional[Coordinates] = None

    @property
    def has_wind(self) -> bool:
        return len(self.wind_speed_samples) > 0

    @property
    def is_empty(self) -> bool:
        return not self.has_wind and all(
            value is None
            for value in (
                self.wind_direction,
                self.dew_point,
                self.temperature,
                self.water_temperature,
                self.pressure,
                self.humidity,
                self.uv,
                self.position,
            )
        )


class SubmissionOutcome(BaseModel):
    success: bool
    timestamp: datetime
    status_code: Optional[int] = None
    body: Optional[str] = None
    error: Optional[str] = None


class SchedulerState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
