"""
logging_config.py — Loguru setup for the Ashinaga API

Loguru is the only logging backend. Records from the stdlib logging module
(uvicorn, SQLAlchemy, botocore) are forwarded into it so every line shares
one format and carries the request ID bound by the middleware.

Output:
- development: coloured single lines with time, level, request ID, location
- production: one JSON object per line on stdout

Anything bound into a record's extra under a password/token/secret/
authorization/cookie key is masked before it reaches a sink.

Called by: app/main.py (lifespan startup)
Depends on: config.settings (environment, log_level)
"""

import logging
import sys

from loguru import logger

from .config import settings

SENSITIVE_KEYS = ("password", "token", "secret", "authorization", "cookie")
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "botocore")

DEV_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[request_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)


def redact(payload):
    """Return a copy of payload with sensitive values replaced by [REDACTED]."""
    if isinstance(payload, dict):
        return {
            k: "[REDACTED]" if _is_sensitive(k) else redact(v)
            for k, v in payload.items()
        }
    if isinstance(payload, list):
        return [redact(v) for v in payload]
    return payload


def _is_sensitive(key) -> bool:
    lowered = str(key).lower()
    return any(s in lowered for s in SENSITIVE_KEYS)


def _redact_extra(record) -> None:
    record["extra"].update(redact(record["extra"]))


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Replace Loguru's sinks and route stdlib logging through it.

    Defaults come from settings; arguments override them (used by tests).
    """
    level = (level or settings.log_level).upper()
    if json_logs is None:
        json_logs = settings.is_production

    logger.remove()
    if json_logs:
        logger.add(sys.stdout, level=level, format="{message}", serialize=True)
    else:
        logger.add(sys.stdout, level=level, format=DEV_FORMAT, colorize=True)
    logger.configure(extra={"request_id": "-"}, patcher=_redact_extra)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging configured", level=level, json=json_logs)


class _InterceptHandler(logging.Handler):
    """Forward a stdlib LogRecord to Loguru at the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())
