"""
Tests for logging setup.
"""

import logging

from recordsheet.infrastructure.logging_config import ColoredFormatter, setup_logging


def make_record(level=logging.WARNING, msg="careful"):
    return logging.LogRecord("recordsheet.test", level, __file__, 1, msg, None, None)


class TestColoredFormatter:
    """Level coloring."""

    def test_colors_applied(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s", use_colors=True)
        output = formatter.format(make_record())
        assert "\033[33m" in output
        assert output.endswith("careful")

    def test_record_restored_for_other_handlers(self):
        record = make_record()
        ColoredFormatter("%(levelname)s %(name)s", use_colors=True).format(record)
        assert record.levelname == "WARNING"
        assert record.name == "recordsheet.test"

    def test_plain_output_without_colors(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s", use_colors=False)
        assert formatter.format(make_record()) == "WARNING careful"


class TestSetupLogging:
    """setup_logging() handlers and levels."""

    def test_file_handler_captures_debug(self, tmp_path, restore_logging):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(level=logging.WARNING, log_file=log_file, use_colors=False)

        logging.getLogger("recordsheet.test").debug("planned 3 columns")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_file.exists()
        assert "planned 3 columns" in log_file.read_text(encoding="utf-8")

    def test_console_level_and_library_noise(self, restore_logging):
        setup_logging(level=logging.ERROR, use_colors=False)

        (console,) = logging.getLogger().handlers
        assert console.level == logging.ERROR
        assert logging.getLogger("openpyxl").level == logging.WARNING
