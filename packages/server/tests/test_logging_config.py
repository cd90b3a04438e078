"""
Logging configuration tests: every configured level and format must produce a
usable logger.
"""

from __future__ import annotations

import json

import pytest
import structlog

from logbook_api.core.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    configure_logging("warning", "text")


def test_json_format_emits_one_object_per_event(capsys):
    configure_logging("info", "json")
    structlog.get_logger().info("establishment.created", establishment_id="abc")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "establishment.created"
    assert event["establishment_id"] == "abc"
    assert event["level"] == "info"


def test_level_filters_lower_events(capsys):
    configure_logging("warning", "text")
    log = structlog.get_logger()
    log.info("hidden")
    log.warning("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "shown" in out


@pytest.mark.parametrize("level", ["debug", "INFO", "Warning", "error", "critical"])
def test_level_names_are_case_insensitive(level):
    configure_logging(level, "json")


def test_unknown_level_raises():
    with pytest.raises(KeyError):
        configure_logging("verbose", "json")
