# path: fake-location/fakelocation/models/location_models.py

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, Strict, field_validator
from pydantic.alias_generators import to_camel


class SimulationMode(str, Enum):
    STATIC = "static"
    JITTER = "jitter"
    ROUTE = "route"
    SQUARE = "square"

    @property
    def moves_along_route(self) -> bool:
        return self in (SimulationMode.ROUTE, SimulationMode.SQUARE)


### Internal geometry

class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class Waypoint(Coordinate):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    hold_seconds: float = Field(default=0.0, ge=0)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


### Wire contract (client -> server)

# Strict: JSON booleans and numeric strings are not numbers here.
Latitude = Annotated[float, Strict(), Field(ge=-90.0, le=90.0, allow_inf_nan=False)]
Longitude = Annotated[float, Strict(), Field(ge=-180.0, le=180.0, allow_inf_nan=False)]
PositiveNumber = Annotated[float, Strict(), Field(gt=0, allow_inf_nan=False)]
NonNegativeNumber = Annotated[float, Strict(), Field(ge=0, allow_inf_nan=False)]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class WaypointIn(WireModel):
    latitude: Latitude
    longitude: Longitude
    hold_seconds: NonNegativeNumber = 0.0

    def to_waypoint(self) -> Waypoint:
        return Waypoint(latitude=self.latitude, longitude=self.longitude, hold_seconds=self.hold_seconds)


class SubscribeMessage(WireModel):
    type: Literal["subscribe"]
    hz: Optional[PositiveNumber] = None


class SetModeMessage(WireModel):
    type: Literal["setMode"]
    mode: SimulationMode


class SetCoordsMessage(WireModel):
    type: Literal["setCoords"]
    latitude: Latitude
    longitude: Longitude


class SetJitterMessage(WireModel):
    type: Literal["setJitter"]
    meters: NonNegativeNumber


class SetRouteMessage(WireModel):
    type: Literal["setRoute"]
    route: List[WaypointIn]
    speed: Optional[PositiveNumber] = None

    @field_validator("route")
    @classmethod
    def validate_route_length(cls, route: List[WaypointIn]):
        if len(route) < 2:
            raise ValueError("route must be array of >= 2 waypoints")
        return route


class SetCircleRouteMessage(WireModel):
    type: Literal["setCircleRoute"]
    center_lat: Latitude
    center_lon: Longitude
    radius_meters: NonNegativeNumber = 300.0
    points: Annotated[int, Strict(), Field(ge=1)] = 36
    speed: PositiveNumber = 3.0
    clockwise: Annotated[bool, Strict()] = True
    hold_seconds: NonNegativeNumber = 0.0


class HealthRequest(WireModel):
    type: Literal["health"]


### Wire contract (server -> client)

class LocationPayload(WireModel):
    latitude: float
    longitude: float
    mode: SimulationMode
    timestamp: str  # ISO-8601, UTC
    velocity_mps: float
    route_index: Optional[int] = None
    jitter_meters: Optional[float] = None


class LocationMessage(WireModel):
    type: Literal["location"] = "location"
    payload: LocationPayload


class StatusMessage(WireModel):
    type: Literal["status"] = "status"
    ok: bool = True
    message: str


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    message: str


class HealthReply(WireModel):
    type: Literal["health"] = "health"
    mode: SimulationMode
    clients: int = Field(ge=0)
