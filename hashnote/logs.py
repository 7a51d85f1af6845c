"""Logging setup with secret redaction."""

from __future__ import annotations

import logging
from collections.abc import Iterable

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RedactingFormatter(logging.Formatter):
    """Formatter that replaces known secret values with ``***``."""

    def __init__(self, secrets: Iterable[str], fmt: str, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # longest first, so a secret containing another is fully masked
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def secret_variants(secret: str | None) -> list[str]:
    """A hex secret as it may appear in output: with and without ``0x``."""
    if not secret:
        return []
    body = secret[2:] if secret[:2] in ("0x", "0X") else secret
    return [body, "0x" + body, body.lower(), body.upper()]


def configure_logging(level: str = "INFO", secrets: Iterable[str] = ()) -> logging.Handler:
    """Install a console handler on the ``hashnote`` logger.

    Returns the handler so callers (and tests) can remove it again.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(RedactingFormatter(secrets, fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger("hashnote")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.addHandler(handler)
    return handler
