"""
Tests for logging setup — level precedence and optional file output.
"""

import logging

import pytest

from rootless.core.observability.logging_config import (
    LEVEL_ENV_VAR,
    resolve_level,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestResolveLevel:
    def test_flags_win_over_env(self):
        env = {LEVEL_ENV_VAR: "ERROR"}
        assert resolve_level(debug=True, environ=env) == "DEBUG"
        assert resolve_level(verbose=True, environ=env) == "INFO"
        assert resolve_level(quiet=True, environ={}) == "ERROR"

    def test_env_then_default(self):
        assert resolve_level(environ={LEVEL_ENV_VAR: "INFO"}) == "INFO"
        assert resolve_level(environ={}) == "WARNING"


class TestSetupLogging:
    def test_console_level(self, restore_root_logger):
        setup_logging(level="INFO")
        assert restore_root_logger.level == logging.INFO
        assert len(restore_root_logger.handlers) == 1

    def test_unknown_level_falls_back(self, restore_root_logger):
        setup_logging(level="LOUD")
        assert restore_root_logger.level == logging.WARNING

    def test_file_handler_at_own_level(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "rootless.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")

        assert restore_root_logger.level == logging.DEBUG
        logging.getLogger("rootless.test").debug("fetched %s", "go")
        for handler in restore_root_logger.handlers:
            handler.flush()
        assert "fetched go" in log_file.read_text()
