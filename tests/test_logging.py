"""
Tests for log formatting.
"""

import json
import logging
from datetime import datetime

from storefront.core.config import settings
from storefront.core.logging import create_formatter


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="storefront.services.token_service",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


def test_json_lines_carry_timestamp_and_service() -> None:
    line = json.loads(create_formatter(debug=False).format(_record("Refresh token rotated")))

    assert line["message"] == "Refresh token rotated"
    assert line["level"] == "WARNING"
    assert line["logger"] == "storefront.services.token_service"
    assert line["service"] == settings.PROJECT_NAME
    assert line["version"] == settings.VERSION
    assert line["timestamp"] is not None
    assert datetime.fromisoformat(line["timestamp"]).tzinfo is not None


def test_debug_format_is_plain_text() -> None:
    text = create_formatter(debug=True).format(_record("hello"))
    assert text.endswith("storefront.services.token_service - WARNING - hello")
