# path: fake-location/fakelocation/services/sessions.py

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict
import itertools


SendJson = Callable[[Dict[str, Any]], Awaitable[None]]

_session_ids = itertools.count(1)


class Session:
    """One connected client. Holds only its subscription; the simulation is shared."""

    def __init__(self, send: SendJson, hz: float):
        self.id = next(_session_ids)
        self.subscribed = False
        self.hz = hz
        self._send = send

    async def send(self, message: Dict[str, Any]) -> None:
        await self._send(message)

    def __repr__(self) -> str:
        return f"Session(id={self.id}, subscribed={self.subscribed}, hz={self.hz})"
