# path: fake-location/fakelocation/services/broadcaster.py

from __future__ import annotations

from typing import Any, Dict, Optional, Set
import asyncio
import logging

from fakelocation.config import MIN_BROADCAST_INTERVAL_S, STREAM_HZ
from fakelocation.models.location_models import LocationMessage
from fakelocation.services.motion_engine import MotionEngine
from fakelocation.services.sessions import Session


logger = logging.getLogger(__name__)


class BroadcastScheduler:
    """
    Pushes one engine snapshot per cycle to every subscribed session.

    There is a single shared cadence: the highest rate any session asked for.
    It only ever goes up.
    """

    def __init__(
        self,
        engine: MotionEngine,
        stream_hz: float = STREAM_HZ,
        min_interval: float = MIN_BROADCAST_INTERVAL_S,
    ):
        if stream_hz <= 0:
            raise ValueError(f"stream_hz must be > 0: {stream_hz}")
        self.engine = engine
        self.min_interval = min_interval
        self._stream_hz = stream_hz
        self._sessions: Set[Session] = set()
        self._task: Optional[asyncio.Task] = None

    @property
    def stream_hz(self) -> float:
        return self._stream_hz

    @property
    def interval(self) -> float:
        return max(self.min_interval, 1.0 / self._stream_hz)

    @property
    def client_count(self) -> int:
        return len(self._sessions)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def register(self, session: Session) -> None:
        self._sessions.add(session)
        logger.info("Session %s connected (%d clients)", session.id, len(self._sessions))

    def unregister(self, session: Session) -> None:
        if session in self._sessions:
            self._sessions.discard(session)
            logger.info("Session %s disconnected (%d clients)", session.id, len(self._sessions))

    def raise_cadence(self, hz: float) -> float:
        self._stream_hz = max(self._stream_hz, hz)
        return self._stream_hz

    def location_message(self) -> Dict[str, Any]:
        return LocationMessage(payload=self.engine.snapshot()).to_wire()

    async def broadcast_once(self) -> int:
        """Send one snapshot to every subscriber; returns how many got it."""
        message = self.location_message()
        delivered = 0
        for session in [s for s in self._sessions if s.subscribed]:
            try:
                await session.send(message)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping session %s after failed send: %s", session.id, e)
                self.unregister(session)
        return delivered

    def ensure_running(self) -> None:
        if self.is_running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; broadcasts must be driven with broadcast_once()")
            return
        self._task = loop.create_task(self._run(), name="location-broadcast")
        logger.info("Broadcast loop started at %s Hz", self._stream_hz)

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        try:
            while True:
                await self.broadcast_once()
                # Re-read every cycle so a raised cadence applies on the next send.
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Broadcast loop crashed; streaming stopped until the next subscribe")
