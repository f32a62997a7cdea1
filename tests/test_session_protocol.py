import json

import pytest

from fakelocation.models.location_models import Coordinate, SimulationMode
from fakelocation.services.session_protocol import WELCOME_MESSAGE


def _send(protocol, session, **message):
    return protocol.handle(session, json.dumps(message))


def test_welcome_explains_how_to_subscribe(protocol):
    assert protocol.welcome() == {"type": "status", "ok": True, "message": WELCOME_MESSAGE}


@pytest.mark.parametrize("raw", ["not json", "{", b"\xc3\x28"])
def test_invalid_json_gets_generic_error(protocol, session, raw):
    assert protocol.handle(session, raw) == {"type": "error", "message": "Invalid JSON"}


def test_unknown_type_is_named_in_error(protocol, session):
    assert _send(protocol, session, type="teleport") == {"type": "error", "message": "unknown type: teleport"}
    assert protocol.handle(session, "[1, 2]")["message"] == "unknown type: None"
    assert protocol.handle(session, "{}")["message"] == "unknown type: None"


def test_subscribe_raises_cadence_but_never_lowers_it(protocol, session, broadcaster):
    reply = _send(protocol, session, type="subscribe", hz=5)
    assert reply == {"type": "status", "ok": True, "message": "Subscribed at ~5 Hz"}
    assert session.subscribed is True

    reply = _send(protocol, session, type="subscribe", hz=2)
    assert reply["message"] == "Subscribed at ~2 Hz"
    assert broadcaster.stream_hz == 5
    assert broadcaster.interval == pytest.approx(0.2)


def test_subscribe_without_hz_uses_current_cadence(protocol, session, broadcaster):
    reply = _send(protocol, session, type="subscribe")
    assert reply["message"] == "Subscribed at ~1 Hz"
    assert broadcaster.stream_hz == 1


@pytest.mark.parametrize("hz", [0, -1, "5", True])
def test_subscribe_rejects_bad_hz(protocol, session, broadcaster, hz):
    reply = _send(protocol, session, type="subscribe", hz=hz)
    assert reply["type"] == "error"
    assert reply["message"].startswith("hz:")
    assert session.subscribed is False
    assert broadcaster.stream_hz == 1


def test_set_mode(protocol, session, engine):
    assert _send(protocol, session, type="setMode", mode="square") == {
        "type": "status", "ok": True, "message": "mode=square",
    }
    assert engine.mode is SimulationMode.SQUARE
    assert engine.state.playing is True

    assert _send(protocol, session, type="setMode", mode="jitter")["message"] == "mode=jitter"
    assert engine.state.playing is False


def test_set_mode_rejects_unknown_mode(protocol, session, engine):
    reply = _send(protocol, session, type="setMode", mode="orbit")
    assert reply["type"] == "error"
    assert "mode" in reply["message"]
    assert engine.mode is SimulationMode.STATIC


def test_set_coords(protocol, session, engine):
    reply = _send(protocol, session, type="setCoords", latitude=12.34, longitude=56)
    assert reply["message"] == "coords set to 12.34,56"
    assert engine.state.position == Coordinate(latitude=12.34, longitude=56.0)


@pytest.mark.parametrize("payload", [
    {"latitude": "12.3", "longitude": 4.0},
    {"latitude": True, "longitude": 4.0},
    {"latitude": 91.0, "longitude": 4.0},
    {"latitude": 10.0, "longitude": -180.5},
    {"latitude": 10.0},
])
def test_set_coords_validation_leaves_position_alone(protocol, session, engine, payload):
    before = engine.state.position
    reply = _send(protocol, session, type="setCoords", **payload)
    assert reply["type"] == "error"
    assert engine.state.position == before


def test_non_finite_numbers_are_rejected(protocol, session, engine):
    reply = protocol.handle(session, '{"type": "setCoords", "latitude": NaN, "longitude": 1}')
    assert reply["type"] == "error"
    reply = protocol.handle(session, '{"type": "setJitter", "meters": Infinity}')
    assert reply["type"] == "error"
    assert engine.jitter_meters == 10.0


def test_set_jitter(protocol, session, engine):
    assert _send(protocol, session, type="setJitter", meters=25)["message"] == "jitter=25m"
    assert engine.jitter_meters == 25

    reply = _send(protocol, session, type="setJitter", meters=-1)
    assert reply["type"] == "error"
    assert engine.jitter_meters == 25


def test_set_route_requires_two_waypoints(protocol, session, engine):
    before = (engine.route, engine.state.position, engine.mode)
    reply = _send(protocol, session, type="setRoute", route=[{"latitude": 1, "longitude": 2}])
    assert reply["type"] == "error"
    assert "route must be array of >= 2 waypoints" in reply["message"]
    assert (engine.route, engine.state.position, engine.mode) == before


def test_set_route_rejects_non_numeric_waypoint(protocol, session, engine):
    before = engine.route
    reply = _send(protocol, session, type="setRoute", route=[
        {"latitude": 1, "longitude": 2},
        {"latitude": "x", "longitude": 2},
    ])
    assert reply["type"] == "error"
    assert reply["message"].startswith("route.1.latitude:")
    assert engine.route == before


def test_set_route_loads_and_plays_in_route_mode(protocol, session, engine):
    _send(protocol, session, type="setMode", mode="route")
    reply = _send(protocol, session, type="setRoute", speed=5, route=[
        {"latitude": 0, "longitude": 0},
        {"latitude": 0, "longitude": 0.01, "holdSeconds": 2},
        {"latitude": 0.01, "longitude": 0.01},
    ])
    assert reply == {"type": "status", "ok": True, "message": "route loaded: 3 points at 5 m/s"}
    assert len(engine.route) == 3
    assert engine.route[1].hold_seconds == 2
    assert engine.state.route_index == 0
    assert engine.state.playing is True


def test_set_route_keeps_speed_when_omitted(protocol, session, engine):
    reply = _send(protocol, session, type="setRoute", route=[
        {"latitude": 0, "longitude": 0},
        {"latitude": 0, "longitude": 1},
    ])
    assert reply["message"] == "route loaded: 2 points at 100 m/s"


def test_set_circle_route_defaults(protocol, session, engine):
    reply = _send(protocol, session, type="setCircleRoute", centerLat=17.385, centerLon=78.4867)
    assert reply["message"] == "circle route set (36 pts, r=300m)"
    assert len(engine.route) == 37
    assert engine.state.speed_mps == 3
    assert engine.state.position == engine.route[0].coordinate


def test_set_circle_route_with_options(protocol, session, engine):
    reply = _send(
        protocol, session, type="setCircleRoute", centerLat=0, centerLon=0,
        radiusMeters=1000, points=8, speed=12.5, clockwise=False, holdSeconds=1,
    )
    assert reply["message"] == "circle route set (8 pts, r=1000m)"
    assert len(engine.route) == 9
    assert engine.state.speed_mps == 12.5
    assert all(wp.hold_seconds == 1 for wp in engine.route)
    assert engine.route[2].longitude < 0  # counter-clockwise: west after a quarter turn


def test_set_circle_route_requires_center(protocol, session, engine):
    before = engine.route
    reply = _send(protocol, session, type="setCircleRoute", centerLon=78.4867)
    assert reply["type"] == "error"
    assert "centerLat" in reply["message"]
    assert engine.route == before

    reply = _send(protocol, session, type="setCircleRoute", centerLat=0, centerLon=0, points=0)
    assert reply["type"] == "error"
    assert engine.route == before


def test_health_reports_mode_and_clients(protocol, session, broadcaster):
    assert _send(protocol, session, type="health") == {"type": "health", "mode": "static", "clients": 1}


@pytest.mark.parametrize("latitude", [90, -90])
def test_jitter_at_a_pole_reports_a_valid_longitude(protocol, session, engine, latitude):
    _send(protocol, session, type="setCoords", latitude=latitude, longitude=0)
    _send(protocol, session, type="setMode", mode="jitter")
    for _ in range(100):
        snap = engine.snapshot()
        assert -90.0 <= snap.latitude <= 90.0
        assert -180.0 <= snap.longitude < 180.0
