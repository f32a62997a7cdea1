# path: fake-location/fakelocation/services/motion_engine.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Tuple
import asyncio
import logging
import random
import time

from fakelocation.config import (
    CENTER_LAT,
    CENTER_LON,
    CIRCLE_POINTS,
    CIRCLE_RADIUS_METERS,
    JITTER_METERS,
    ROUTE_SPEED_MPS,
    SQUARE_POINTS_PER_SIDE,
    SQUARE_SIDE_METERS,
    TICK_INTERVAL_S,
)
from fakelocation.models.location_models import Coordinate, LocationPayload, SimulationMode, Waypoint
from fakelocation.services.route_generators import circle_route, square_route
from fakelocation.utils.geo import apply_jitter, distance_m, interpolate


logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class MotionState:
    position: Coordinate
    route_index: int = 0
    progress: float = 0.0  # fraction of the way to the next waypoint, [0,1)
    speed_mps: float = ROUTE_SPEED_MPS
    velocity_mps: float = 0.0
    last_tick: float = 0.0
    playing: bool = False
    last_position: Optional[Coordinate] = None


class MotionEngine:
    """
    The one simulated GPS source shared by every session.

    All mutation goes through the methods below. Route playback runs as an
    asyncio task that re-schedules itself after each tick; without a running
    event loop the caller drives it with tick().
    """

    def __init__(
        self,
        center: Optional[Coordinate] = None,
        mode: SimulationMode = SimulationMode.ROUTE,
        speed_mps: float = ROUTE_SPEED_MPS,
        jitter_meters: float = JITTER_METERS,
        tick_interval: float = TICK_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        if speed_mps <= 0:
            raise ValueError(f"speed_mps must be > 0: {speed_mps}")
        if jitter_meters < 0:
            raise ValueError(f"jitter_meters must be >= 0: {jitter_meters}")

        self.center = center or Coordinate(latitude=CENTER_LAT, longitude=CENTER_LON)
        self.tick_interval = tick_interval
        self._mode = SimulationMode(mode)
        self._jitter_meters = jitter_meters
        self._clock = clock
        self._rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None

        self._route: Tuple[Waypoint, ...] = tuple(self._default_route(self._mode))
        self._custom_route = False

        start = self._route[0].coordinate if self._mode.moves_along_route else self.center
        self.state = MotionState(position=start, speed_mps=speed_mps, last_tick=clock())

    @property
    def mode(self) -> SimulationMode:
        return self._mode

    @property
    def route(self) -> Tuple[Waypoint, ...]:
        return self._route

    @property
    def jitter_meters(self) -> float:
        return self._jitter_meters

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _default_route(self, mode: SimulationMode):
        if mode is SimulationMode.SQUARE:
            return square_route(self.center, SQUARE_SIDE_METERS, SQUARE_POINTS_PER_SIDE)
        return circle_route(self.center, CIRCLE_RADIUS_METERS, CIRCLE_POINTS)

    ### Configuration

    def set_mode(self, mode: SimulationMode) -> None:
        mode = SimulationMode(mode)
        self._mode = mode
        if mode is SimulationMode.SQUARE:
            self._install_route(self._default_route(mode), custom=False)
            self.start()
        elif mode is SimulationMode.ROUTE:
            # A loaded route survives the switch; anything else gets the default circle.
            if not self._custom_route:
                self._install_route(self._default_route(mode), custom=False)
            self.start()
        else:
            self.stop()
        logger.info("Mode switched to %s", mode.value)

    def set_static_coordinates(self, coord: Coordinate) -> None:
        self.state.position = Coordinate(latitude=coord.latitude, longitude=coord.longitude)

    def set_jitter_radius(self, meters: float) -> None:
        if meters < 0:
            raise ValueError(f"jitter radius must be >= 0: {meters}")
        self._jitter_meters = meters

    def load_custom_route(self, waypoints: Iterable[Coordinate], speed: Optional[float] = None) -> None:
        route = [
            wp if isinstance(wp, Waypoint) else Waypoint(latitude=wp.latitude, longitude=wp.longitude)
            for wp in waypoints
        ]
        if len(route) < 2:
            raise ValueError("route must contain at least 2 waypoints")
        if speed is not None and speed <= 0:
            raise ValueError(f"speed must be > 0: {speed}")

        if speed is not None:
            self.state.speed_mps = speed
        self._install_route(route, custom=True)
        logger.info("Loaded route: %d points at %s m/s", len(route), self.state.speed_mps)
        if self._mode is SimulationMode.ROUTE:
            self.start()

    def load_circle_route(
        self,
        center: Coordinate,
        radius_m: float = 300.0,
        point_count: int = 36,
        speed: float = 3.0,
        clockwise: bool = True,
        hold_seconds: float = 0.0,
    ) -> None:
        if speed <= 0:
            raise ValueError(f"speed must be > 0: {speed}")
        route = circle_route(center, radius_m, point_count, clockwise=clockwise, hold_seconds=hold_seconds)

        self.state.speed_mps = speed
        self._install_route(route, custom=True)
        logger.info("Loaded circle route: %d points, r=%sm at %s m/s", point_count, radius_m, speed)
        if self._mode is SimulationMode.ROUTE:
            self.start()

    def _install_route(self, route, custom: bool) -> None:
        # Replaced wholesale, never edited in place.
        self._route = tuple(route)
        self._custom_route = custom
        self._reset_playback()

    def _reset_playback(self) -> None:
        state = self.state
        state.route_index = 0
        state.progress = 0.0
        state.position = self._route[0].coordinate
        state.last_position = None
        state.last_tick = self._clock()

    ### Reads

    def snapshot(self) -> LocationPayload:
        state = self.state
        position = state.position
        extra = {}
        if self._mode is SimulationMode.JITTER:
            position = apply_jitter(position, self._jitter_meters, self._rng)
            extra["jitter_meters"] = self._jitter_meters
        elif self._mode.moves_along_route:
            extra["route_index"] = state.route_index

        return LocationPayload(
            latitude=position.latitude,
            longitude=position.longitude,
            mode=self._mode,
            timestamp=utc_now_iso(),
            velocity_mps=state.velocity_mps,
            **extra,
        )

    ### Playback

    def start(self) -> None:
        """(Re)start route playback from the first waypoint."""
        self._cancel_task()
        self._reset_playback()
        self.state.playing = True

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; route playback must be driven with tick()")
            return
        self._task = loop.create_task(self._run(), name="motion-tick")

    def stop(self) -> None:
        self.state.playing = False
        self.state.velocity_mps = 0.0
        self._cancel_task()

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        try:
            while True:
                delay = self.tick()
                if delay is None:
                    return
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Tick loop crashed; route playback stopped")
            self.state.playing = False

    def tick(self, now: Optional[float] = None) -> Optional[float]:
        """
        Advance along the route by the time elapsed since the previous tick.

        Returns the delay in seconds before the next tick should run, or None
        when playback is stopped.
        """
        state = self.state
        route = self._route
        if not state.playing or not self._mode.moves_along_route or len(route) < 2:
            return None

        now = self._clock() if now is None else now
        elapsed = max(0.0, now - state.last_tick)
        state.last_tick = now

        n = len(route)
        a = route[state.route_index % n]
        b = route[(state.route_index + 1) % n]
        distance = distance_m(a, b)

        if distance == 0:
            state.route_index = (state.route_index + 1) % n
            state.position = a.coordinate
            state.progress = 0.0
            state.velocity_mps = 0.0
            return self._dwell(now, a.hold_seconds)

        state.progress += state.speed_mps * elapsed / distance
        previous = state.last_position

        if state.progress >= 1:
            state.route_index = (state.route_index + 1) % n
            wp = route[state.route_index]
            state.position = wp.coordinate
            state.progress = 0.0
            self._update_velocity(previous, elapsed)
            state.last_position = state.position
            if wp.hold_seconds > 0:
                state.velocity_mps = 0.0
            return self._dwell(now, wp.hold_seconds)

        state.position = interpolate(a, b, state.progress)
        self._update_velocity(previous, elapsed)
        state.last_position = state.position
        return self.tick_interval

    def _dwell(self, now: float, hold_seconds: float) -> float:
        # Time spent holding at a waypoint is not travel time.
        self.state.last_tick = now + hold_seconds
        return hold_seconds

    def _update_velocity(self, previous: Optional[Coordinate], elapsed: float) -> None:
        state = self.state
        if previous is not None and elapsed > 0:
            state.velocity_mps = distance_m(previous, state.position) / elapsed
        else:
            state.velocity_mps = state.speed_mps
