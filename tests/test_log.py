"""Tests for log level resolution and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import click
import pytest

from lms.log import configure_logging, resolve_log_level


@pytest.fixture(autouse=True)
def reset_lms_logger():
    yield
    configure_logging("none")
    logging.getLogger("lms").setLevel(logging.NOTSET)


class TestResolveLogLevel:
    def test_default_is_info(self) -> None:
        assert resolve_log_level() == "info"

    def test_explicit_level(self) -> None:
        assert resolve_log_level("warn") == "warn"

    def test_verbose(self) -> None:
        assert resolve_log_level(verbose=True) == "debug"

    def test_quiet(self) -> None:
        assert resolve_log_level(quiet=True) == "none"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"log_level": "debug", "verbose": True},
            {"log_level": "debug", "quiet": True},
            {"verbose": True, "quiet": True},
        ],
    )
    def test_conflicting_options(self, kwargs: dict) -> None:
        with pytest.raises(click.UsageError, match="Only one of"):
            resolve_log_level(**kwargs)

    def test_unknown_level(self) -> None:
        with pytest.raises(click.UsageError):
            resolve_log_level("loud")


class TestConfigureLogging:
    def test_installs_single_handler(self) -> None:
        logger = logging.getLogger("lms")
        configure_logging("none")
        before = len(logger.handlers)
        configure_logging("info")
        configure_logging("debug")
        assert len(logger.handlers) == before + 1
        assert logger.level == logging.DEBUG

    def test_none_silences(self) -> None:
        configure_logging("none")
        assert not logging.getLogger("lms.chat").isEnabledFor(logging.CRITICAL)

    def test_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "lms.log"
        configure_logging("info", log_file)
        logging.getLogger("lms.test").info("hello from the test")
        logging.getLogger("lms.test").debug("not written")
        configure_logging("none")
        text = log_file.read_text()
        assert "[INFO] lms.test: hello from the test" in text
        assert "not written" not in text
