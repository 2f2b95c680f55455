"""
Unit tests for logging setup.
"""
import logging
from unittest.mock import patch

from rich.logging import RichHandler

from stageboard.utils.logging import SanitizingFormatter, get_log_level, setup_logging

from tests.conftest import make_settings


def configured_handlers(settings, **kwargs):
    """Run setup_logging without touching the real root logger; return its handlers."""
    with patch('stageboard.utils.logging.logging.basicConfig') as mock_config:
        setup_logging(settings, **kwargs)
    return mock_config.call_args.kwargs


class TestLogLevel:
    """Test level lookup from settings."""

    def test_named_level(self):
        assert get_log_level(make_settings(LOG_LEVEL="debug")) == logging.DEBUG

    def test_unknown_level_is_info(self):
        assert get_log_level(make_settings(LOG_LEVEL="chatty")) == logging.INFO


class TestSetupLogging:
    """Test handler selection driven by settings."""

    def test_console_only_by_default(self):
        config = configured_handlers(make_settings(LOG_LEVEL="ERROR"))

        assert config["level"] == logging.ERROR
        assert [type(h) for h in config["handlers"]] == [RichHandler]

    def test_production_quiets_console(self):
        config = configured_handlers(make_settings(ENVIRONMENT="production", LOG_LEVEL="DEBUG"))

        assert config["level"] == logging.DEBUG
        assert config["handlers"][0].level == logging.WARNING

    def test_level_override(self):
        config = configured_handlers(make_settings(LOG_LEVEL="ERROR"), level=logging.DEBUG)

        assert config["handlers"][0].level == logging.DEBUG

    def test_log_file_in_configured_dir(self, tmp_path):
        settings = make_settings(LOG_TO_FILE=True, LOG_DIR=tmp_path / "logs")

        config = configured_handlers(settings)

        file_handler = config["handlers"][1]
        try:
            assert isinstance(file_handler, logging.FileHandler)
            assert isinstance(file_handler.formatter, SanitizingFormatter)
            assert file_handler.baseFilename.startswith(str(tmp_path / "logs" / "stageboard_test_"))
        finally:
            file_handler.close()

    def test_log_file_override_disables_file(self, tmp_path):
        settings = make_settings(LOG_TO_FILE=True, LOG_DIR=tmp_path)

        config = configured_handlers(settings, log_file=False)

        assert len(config["handlers"]) == 1
        assert list(tmp_path.iterdir()) == []

    def test_sdk_loggers_quieted(self):
        configured_handlers(make_settings(LOG_LEVEL="INFO"))

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_verbose_keeps_sdk_loggers(self):
        configured_handlers(make_settings(), level=logging.DEBUG)

        assert logging.getLogger("anthropic").level == logging.DEBUG


class TestSanitizingFormatter:
    """Test masking in the file format."""

    def test_record_is_left_unchanged(self):
        key = "sk-ant-" + "d" * 30
        record = logging.LogRecord("stageboard", logging.WARNING, __file__, 1, "key %s\nforged line", (key,), None)

        line = SanitizingFormatter("%(levelname)s %(message)s").format(record)

        assert line == "WARNING key sk-ant-***MASKED***\\nforged line"
        assert record.args == (key,)
