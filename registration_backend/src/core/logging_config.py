"""
Logging setup for the registration backend.

Customer records carry names, emails and phone numbers, and the connection
URL carries the database password; both are masked before a record is
emitted.
"""

import logging
import re
from typing import Pattern

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class SecretMaskingFilter(logging.Filter):
    """Replaces credentials and email addresses in log records with placeholders."""

    PATTERNS: list[tuple[Pattern, str]] = [
        # Passwords embedded in connection URLs
        (re.compile(r"(\w+://[^:/\s]+:)([^@\s]+)(@)"), r"\1[REDACTED_PASSWORD]\3"),
        # password=... / pass=...
        (re.compile(r'(pass(?:word)?["\']?\s*[:=]\s*["\']?)([^\s"\',]+)', re.IGNORECASE), r"\1[REDACTED_PASSWORD]"),
        # Email addresses (PII)
        (re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b"), "[REDACTED_EMAIL]"),
    ]

    def mask(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.mask(record.getMessage())
        record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install a single masked stream handler on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(SecretMaskingFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Keep SQL echo out of application logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
