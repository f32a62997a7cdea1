"""Shared fixtures: a controllable clock and a wired engine/broadcaster/protocol."""

from __future__ import annotations

import random

import pytest

from fakelocation.models.location_models import SimulationMode
from fakelocation.services.broadcaster import BroadcastScheduler
from fakelocation.services.motion_engine import MotionEngine
from fakelocation.services.session_protocol import SessionProtocol
from fakelocation.services.sessions import Session


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class RecordingSender:
    def __init__(self):
        self.sent = []

    async def __call__(self, message):
        self.sent.append(message)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return MotionEngine(mode=SimulationMode.STATIC, clock=clock, rng=random.Random(42))


@pytest.fixture
def broadcaster(engine):
    return BroadcastScheduler(engine, stream_hz=1.0)


@pytest.fixture
def protocol(engine, broadcaster):
    return SessionProtocol(engine, broadcaster)


@pytest.fixture
def session(broadcaster):
    s = Session(send=RecordingSender(), hz=broadcaster.stream_hz)
    broadcaster.register(s)
    return s
