"""Tests for logger setup."""

import sys

from loguru import logger

from whereabouts.core.logger import console_format, file_format, setup_logger


class TestFormats:
    """Bound context is rendered only when present."""

    def test_extra_appended_when_bound(self):
        assert "{extra}" in console_format({"extra": {"code": "QUARTER_LOCKED"}})
        assert "{extra}" in file_format({"extra": {"code": "QUARTER_LOCKED"}})

    def test_plain_line_without_context(self):
        assert "{extra}" not in console_format({"extra": {}})
        assert "{extra}" not in file_format({"extra": {}})


def test_file_sink_writes_bound_context(tmp_path):
    """Test a bound precondition code reaches the log file."""
    log_file = tmp_path / "logs" / "whereabouts.log"
    setup_logger(level="DEBUG", log_file=str(log_file), rotation="1 MB", retention="1 day")
    try:
        logger.bind(code="QUARTER_NOT_COMPLETE", quarter_id="q-9").error("[WHEREABOUTS] Precondition failed")
    finally:
        logger.remove()
        logger.add(sys.stderr)

    content = log_file.read_text()
    assert "[WHEREABOUTS] Precondition failed" in content
    assert "QUARTER_NOT_COMPLETE" in content
    assert "q-9" in content
