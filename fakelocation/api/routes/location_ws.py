# path: fake-location/fakelocation/api/routes/location_ws.py

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from fakelocation.config import WS_PATH
from fakelocation.services.sessions import Session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["location"])


@router.websocket(WS_PATH)
async def location_stream(websocket: WebSocket) -> None:
    broadcaster = websocket.app.state.broadcaster
    protocol = websocket.app.state.protocol

    await websocket.accept()
    session = Session(send=websocket.send_json, hz=broadcaster.stream_hz)
    broadcaster.register(session)
    try:
        await session.send(protocol.welcome())
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Binary frames carry the same JSON as text frames.
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await session.send(protocol.handle(session, raw))
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unregister(session)
