from __future__ import annotations

import logging
import re

from rich.console import Console
from rich.logging import RichHandler

_BEARER_RE = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9_\-\.=]+)")
_JWT_RE = re.compile(r"\beyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\b")


def redact(text: str) -> str:
    """Mask bearer credentials and JWTs in a log line."""
    text = _BEARER_RE.sub("Bearer ***", text)
    return _JWT_RE.sub("***", text)


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def configure_logging(debug: bool = False, console: Console | None = None) -> None:
    """Route authfetch loggers to stderr through rich."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=debug,
        rich_tracebacks=debug,
    )
    handler.addFilter(RedactingFilter())
    logger = logging.getLogger("authfetch")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False
