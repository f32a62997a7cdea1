# path: fake-location/fakelocation/services/session_protocol.py

from __future__ import annotations

from typing import Any, Callable, Dict, Type, Union
import json
import logging

from pydantic import ValidationError

from fakelocation.models.location_models import (
    Coordinate,
    ErrorMessage,
    HealthReply,
    HealthRequest,
    SetCircleRouteMessage,
    SetCoordsMessage,
    SetJitterMessage,
    SetModeMessage,
    SetRouteMessage,
    StatusMessage,
    SubscribeMessage,
    WireModel,
)
from fakelocation.services.broadcaster import BroadcastScheduler
from fakelocation.services.motion_engine import MotionEngine
from fakelocation.services.sessions import Session


logger = logging.getLogger(__name__)

WELCOME_MESSAGE = 'Connected. Send {"type":"subscribe","hz":1} to start streaming.'

MESSAGE_MODELS: Dict[str, Type[WireModel]] = {
    "subscribe": SubscribeMessage,
    "setMode": SetModeMessage,
    "setCoords": SetCoordsMessage,
    "setJitter": SetJitterMessage,
    "setRoute": SetRouteMessage,
    "setCircleRoute": SetCircleRouteMessage,
    "health": HealthRequest,
}


def format_number(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def error_reply(message: str) -> Dict[str, Any]:
    return ErrorMessage(message=message).to_wire()


class SessionProtocol:
    """
    Turns one inbound client message into engine/broadcaster calls and a reply.

    Replies go back to the sending session only. A message that fails parsing
    or validation leaves the simulation untouched.
    """

    def __init__(self, engine: MotionEngine, broadcaster: BroadcastScheduler):
        self.engine = engine
        self.broadcaster = broadcaster
        self._handlers: Dict[str, Callable[[Session, Any], WireModel]] = {
            "subscribe": self._on_subscribe,
            "setMode": self._on_set_mode,
            "setCoords": self._on_set_coords,
            "setJitter": self._on_set_jitter,
            "setRoute": self._on_set_route,
            "setCircleRoute": self._on_set_circle_route,
            "health": self._on_health,
        }

    def welcome(self) -> Dict[str, Any]:
        return StatusMessage(message=WELCOME_MESSAGE).to_wire()

    def handle(self, session: Session, raw: Union[str, bytes]) -> Dict[str, Any]:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.info("Session %s sent invalid JSON", session.id)
            return error_reply("Invalid JSON")

        msg_type = data.get("type") if isinstance(data, dict) else None
        model = MESSAGE_MODELS.get(msg_type) if isinstance(msg_type, str) else None
        if model is None:
            logger.info("Session %s sent unknown type %r", session.id, msg_type)
            return error_reply(f"unknown type: {msg_type}")

        try:
            message = model.model_validate(data)
        except ValidationError as e:
            reason = format_validation_error(e)
            logger.info("Session %s %s rejected: %s", session.id, msg_type, reason)
            return error_reply(reason)

        logger.debug("Session %s -> %s", session.id, msg_type)
        try:
            reply = self._handlers[msg_type](session, message)
        except ValueError as e:
            logger.info("Session %s %s failed: %s", session.id, msg_type, e)
            return error_reply(str(e))
        return reply.to_wire()

    def _on_subscribe(self, session: Session, msg: SubscribeMessage) -> StatusMessage:
        session.subscribed = True
        if msg.hz is not None:
            session.hz = msg.hz
            # Single shared timer: the cadence is the fastest any session asked for.
            self.broadcaster.raise_cadence(msg.hz)
        self.broadcaster.ensure_running()
        return StatusMessage(message=f"Subscribed at ~{format_number(session.hz)} Hz")

    def _on_set_mode(self, session: Session, msg: SetModeMessage) -> StatusMessage:
        self.engine.set_mode(msg.mode)
        return StatusMessage(message=f"mode={msg.mode.value}")

    def _on_set_coords(self, session: Session, msg: SetCoordsMessage) -> StatusMessage:
        self.engine.set_static_coordinates(Coordinate(latitude=msg.latitude, longitude=msg.longitude))
        return StatusMessage(
            message=f"coords set to {format_number(msg.latitude)},{format_number(msg.longitude)}"
        )

    def _on_set_jitter(self, session: Session, msg: SetJitterMessage) -> StatusMessage:
        self.engine.set_jitter_radius(msg.meters)
        return StatusMessage(message=f"jitter={format_number(msg.meters)}m")

    def _on_set_route(self, session: Session, msg: SetRouteMessage) -> StatusMessage:
        self.engine.load_custom_route([wp.to_waypoint() for wp in msg.route], speed=msg.speed)
        speed = format_number(self.engine.state.speed_mps)
        return StatusMessage(message=f"route loaded: {len(msg.route)} points at {speed} m/s")

    def _on_set_circle_route(self, session: Session, msg: SetCircleRouteMessage) -> StatusMessage:
        self.engine.load_circle_route(
            Coordinate(latitude=msg.center_lat, longitude=msg.center_lon),
            radius_m=msg.radius_meters,
            point_count=msg.points,
            speed=msg.speed,
            clockwise=msg.clockwise,
            hold_seconds=msg.hold_seconds,
        )
        return StatusMessage(
            message=f"circle route set ({msg.points} pts, r={format_number(msg.radius_meters)}m)"
        )

    def _on_health(self, session: Session, msg: HealthRequest) -> HealthReply:
        return HealthReply(mode=self.engine.mode, clients=self.broadcaster.client_count)
