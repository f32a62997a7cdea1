# path: fake-location/fakelocation/main.py

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional
import logging

import uvicorn
from fastapi import FastAPI

from fakelocation.api.routes.location_ws import router as location_router
from fakelocation.config import WS_PATH, SimulatorSettings
from fakelocation.logging_setup import setup_logging
from fakelocation.services.broadcaster import BroadcastScheduler
from fakelocation.services.motion_engine import MotionEngine
from fakelocation.services.session_protocol import SessionProtocol

logger = logging.getLogger(__name__)


def create_app(settings: Optional[SimulatorSettings] = None) -> FastAPI:
    settings = settings or SimulatorSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = MotionEngine(
            center=settings.center,
            mode=settings.mode,
            speed_mps=settings.speed_mps,
            jitter_meters=settings.jitter_meters,
        )
        broadcaster = BroadcastScheduler(engine, stream_hz=settings.stream_hz)
        app.state.engine = engine
        app.state.broadcaster = broadcaster
        app.state.protocol = SessionProtocol(engine, broadcaster)

        if engine.mode.moves_along_route:
            logger.info("Starting %s mode with %d waypoints", engine.mode.value, len(engine.route))
            engine.start()
        else:
            logger.info("Starting %s mode at %s,%s", engine.mode.value,
                        engine.state.position.latitude, engine.state.position.longitude)
        try:
            yield
        finally:
            broadcaster.stop()
            engine.stop()

    app = FastAPI(title="fake-location", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(location_router)
    return app


def run() -> None:
    setup_logging("fake-location")
    settings = SimulatorSettings.from_env()
    logger.info("FakeLocation WS server on http://localhost:%d (WS path: %s)", settings.port, WS_PATH)
    config = uvicorn.Config(create_app(settings), host=settings.host, port=settings.port, log_level="info")
    uvicorn.Server(config).run()


if __name__ == "__main__":
    run()
