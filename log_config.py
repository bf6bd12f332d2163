"""
Logging setup for the QRZ XML client and its scripts.
"""

import logging
import re
from typing import Optional

from config import config


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Loggers that see request URLs or raw response bodies
REDACTED_LOGGERS = ("httpx", "qrz_xml_client")


class SensitiveDataFilter(logging.Filter):
    """Filter to redact credentials and session keys from log messages."""

    # Patterns for sensitive query parameters and response fields
    SENSITIVE_PATTERNS = [
        (re.compile(r'([?&]password=)[^&\s"]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'([?&]s=)[^&\s"]+'), r'\1[REDACTED]'),
        (re.compile(r'(<Key>)[^<]+(</Key>)'), r'\1[REDACTED]\2'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            # httpx passes the URL as an argument, so render the message first
            msg = record.getMessage()
            for pattern, replacement in self.SENSITIVE_PATTERNS:
                msg = pattern.sub(replacement, msg)
            record.msg = msg
            record.args = ()
        return True


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging and attach the redaction filter.

    Args:
        level: Log level name; defaults to config.LOG_LEVEL
    """
    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    install_redaction()


def install_redaction() -> None:
    """Attach SensitiveDataFilter to each logger in REDACTED_LOGGERS, once."""
    for name in REDACTED_LOGGERS:
        target = logging.getLogger(name)
        if not any(isinstance(f, SensitiveDataFilter) for f in target.filters):
            target.addFilter(SensitiveDataFilter())
