"""Tests for vcs_toolkit/utils/logging_config.py - structlog setup."""

import json

import pytest
import structlog

from vcs_toolkit.utils import logging_config
from vcs_toolkit.utils.logging_config import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_lines_on_stderr(self, capsys):
        configure_logging("INFO")

        structlog.get_logger("vcs_toolkit.test").info("provider_registered", name="gitea")

        captured = capsys.readouterr()
        assert captured.out == ""
        event = json.loads(captured.err.strip())
        assert event["event"] == "provider_registered"
        assert event["name"] == "gitea"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filtering(self, capsys):
        configure_logging("warning")
        log = structlog.get_logger("vcs_toolkit.test")

        log.info("hidden")
        log.warning("shown")

        lines = capsys.readouterr().err.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["shown"]

    def test_module_exposes_only_configuration(self):
        assert not hasattr(logging_config, "get_logger")
