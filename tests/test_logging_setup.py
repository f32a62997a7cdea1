import json
import logging

from fakelocation.logging_setup import JsonLineFormatter, ServiceFilter, resolve_level


def test_explicit_level_beats_environment(monkeypatch):
    monkeypatch.setenv("FAKELOC_LOG_LEVEL", "ERROR")
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level() == logging.ERROR


def test_level_defaults_to_info(monkeypatch):
    monkeypatch.delenv("FAKELOC_LOG_LEVEL", raising=False)
    assert resolve_level() == logging.INFO
    assert resolve_level("loud") == logging.INFO


def test_json_lines_carry_the_service_label():
    record = logging.LogRecord("fakelocation.test", logging.WARNING, __file__, 1, "moved %s m", (12,), None)
    ServiceFilter("fake-location").filter(record)
    line = json.loads(JsonLineFormatter().format(record))
    assert line["service"] == "fake-location"
    assert line["level"] == "WARNING"
    assert line["message"] == "moved 12 m"
