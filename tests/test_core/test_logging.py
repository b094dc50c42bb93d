"""
Tests for provisioner.core.logging
====================================
"""

import structlog

from provisioner.core.logging import configure_logging


class TestConfigureLogging:
    def test_level_filters_debug(self, capsys) -> None:
        configure_logging("INFO")
        log = structlog.get_logger()
        log.debug("hidden_event")
        log.info("shown_event")
        out = capsys.readouterr().out
        assert "shown_event" in out
        assert "hidden_event" not in out

    def test_debug_level_shows_debug(self, capsys) -> None:
        configure_logging("debug")
        structlog.get_logger().debug("debug_event")
        assert "debug_event" in capsys.readouterr().out

    def test_unknown_level_falls_back_to_info(self, capsys) -> None:
        configure_logging("LOUD")
        log = structlog.get_logger()
        log.debug("hidden_event")
        log.info("shown_event")
        out = capsys.readouterr().out
        assert "shown_event" in out
        assert "hidden_event" not in out
