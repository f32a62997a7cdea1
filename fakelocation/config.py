# path: fake-location/fakelocation/config.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from fakelocation.models.location_models import Coordinate, SimulationMode


WS_PATH = "/getCoordinates"

CENTER_LAT = 17.3850
CENTER_LON = 78.4867

# 100 mile diameter circle, one point every 5 degrees
CIRCLE_RADIUS_METERS = 80467.2
CIRCLE_POINTS = 72

# 100 mile sides
SQUARE_SIDE_METERS = 160934.4
SQUARE_POINTS_PER_SIDE = 25

ROUTE_SPEED_MPS = 100.0
JITTER_METERS = 10.0

STREAM_HZ = 1.0
MIN_BROADCAST_INTERVAL_S = 0.1
TICK_INTERVAL_S = 0.1

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")


@dataclass(frozen=True)
class SimulatorSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    mode: SimulationMode = SimulationMode.ROUTE
    center_lat: float = CENTER_LAT
    center_lon: float = CENTER_LON
    speed_mps: float = ROUTE_SPEED_MPS
    jitter_meters: float = JITTER_METERS
    stream_hz: float = STREAM_HZ

    def __post_init__(self):
        object.__setattr__(self, "mode", SimulationMode(self.mode))
        if not (-90.0 <= self.center_lat <= 90.0):
            raise ValueError(f"center_lat out of range [-90,90]: {self.center_lat}")
        if not (-180.0 <= self.center_lon <= 180.0):
            raise ValueError(f"center_lon out of range [-180,180]: {self.center_lon}")
        if self.speed_mps <= 0:
            raise ValueError(f"speed_mps must be > 0: {self.speed_mps}")
        if self.jitter_meters < 0:
            raise ValueError(f"jitter_meters must be >= 0: {self.jitter_meters}")
        if self.stream_hz <= 0:
            raise ValueError(f"stream_hz must be > 0: {self.stream_hz}")

    @property
    def center(self) -> Coordinate:
        return Coordinate(latitude=self.center_lat, longitude=self.center_lon)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "SimulatorSettings":
        """Environment overrides on top of the module defaults."""
        env = os.environ if env is None else env
        mode_raw = env.get("FAKELOC_MODE") or SimulationMode.ROUTE.value
        try:
            mode = SimulationMode(mode_raw)
        except ValueError:
            raise ValueError(f"FAKELOC_MODE must be static|jitter|route|square, got {mode_raw!r}")
        port_raw = env.get("PORT") or str(DEFAULT_PORT)
        try:
            port = int(port_raw)
        except ValueError:
            raise ValueError(f"PORT must be an integer, got {port_raw!r}")

        return cls(
            host=env.get("HOST") or DEFAULT_HOST,
            port=port,
            mode=mode,
            center_lat=_env_float(env, "FAKELOC_CENTER_LAT", CENTER_LAT),
            center_lon=_env_float(env, "FAKELOC_CENTER_LON", CENTER_LON),
            speed_mps=_env_float(env, "FAKELOC_SPEED_MPS", ROUTE_SPEED_MPS),
            jitter_meters=_env_float(env, "FAKELOC_JITTER_METERS", JITTER_METERS),
            stream_hz=_env_float(env, "FAKELOC_STREAM_HZ", STREAM_HZ),
        )
