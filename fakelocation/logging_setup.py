# path: fake-location/fakelocation/logging_setup.py

"""
Root logging for the service: stderr always, JSON lines or a rotating file on request.

Env (an explicit argument to setup_logging wins over these):
- FAKELOC_LOG_LEVEL=DEBUG|INFO|WARNING|ERROR (default INFO)
- FAKELOC_LOG_JSON=1
- FAKELOC_LOG_FILE=/path/to/file.log
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional
import json
import logging
import logging.handlers
import os
import sys


TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(service)s] %(message)s"
TRUTHY = ("1", "true", "yes", "on")
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5

_configured = False


class ServiceFilter(logging.Filter):
    """Stamps every record with the service label used by both formatters."""

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self.service
        return True


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "service": getattr(record, "service", ""),
            "message": record.getMessage(),
        }
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False)


def resolve_level(level: Optional[str] = None) -> int:
    name = (level or os.getenv("FAKELOC_LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _wants_json(json_format: Optional[bool]) -> bool:
    if json_format is not None:
        return json_format
    return os.getenv("FAKELOC_LOG_JSON", "").lower() in TRUTHY


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(stream=sys.stderr)]
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8",
            ))
        except OSError as e:
            logging.getLogger(__name__).warning("Cannot log to %s (%s); stderr only", log_file, e)
    return handlers


def setup_logging(
    service: str = "fake-location",
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure the root logger once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(resolve_level(level))

    formatter = JsonLineFormatter() if _wants_json(json_format) else logging.Formatter(TEXT_FORMAT)
    service_filter = ServiceFilter(service)
    for handler in _build_handlers(os.getenv("FAKELOC_LOG_FILE")):
        handler.setFormatter(formatter)
        handler.addFilter(service_filter)
        root.addHandler(handler)

    _configured = True
