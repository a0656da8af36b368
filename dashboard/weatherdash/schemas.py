from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

AlertLevel = Literal["notice", "warning", "danger"]


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    level: AlertLevel
    title: str
    message: str


class LocationQuery(BaseModel):
    city: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)
    units: str = "metric"

    @property
    def unit_system(self) -> str:
        # Anything that is not explicitly metric is served as imperial.
        return "metric" if self.units == "metric" else "imperial"


class ChatRequest(LocationQuery):
    question: Optional[str] = None


class GeoLocation(BaseModel):
    lat: float
    lon: float
    name: str


class Coords(BaseModel):
    lat: float
    lon: float


class TimelinesResponse(BaseModel):
    location: str
    coords: Coords
    timelines: Dict[str, Any]


class AlertsResponse(BaseModel):
    alerts: List[Alert]


class ChatResponse(BaseModel):
    answer: str
    weatherContext: Dict[str, Any]
