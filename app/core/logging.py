"""Loguru setup for the NFT aggregation service.

Everything goes to stdout and a rotating file under ``LOG_DIR``. The CoinGecko
and OpenSea clients log through bound loggers from ``get_logger``; their raw
httpx request lines and the uvicorn server logs arrive through the stdlib and
are re-emitted here. ERROR records are also posted to Slack when a webhook is
configured, so a failing provider shows up there.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from app.core.config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[name]}:{function}:{line} | {message}"
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Set once configure_logging has installed the sinks
_logging_configured = False


class InterceptHandler(logging.Handler):
    """Forward stdlib records into Loguru.

    Used for httpx (one line per CoinGecko or OpenSea request) and for the
    uvicorn error and access loggers, keeping the caller depth so the
    reported function and line point at the original call site.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_name == "emit":
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _slack_sink(message: Any) -> None:
    if not settings.SLACK_WEBHOOK_URL:
        return

    record = message.record
    name = record["extra"].get("name") or "nft-backend"
    location = f"{name}:{record['function']}:{record['line']}"
    text = f"[nft-backend] [{record['level'].name}] {location}\n{record['message']}"
    try:
        httpx.post(
            settings.SLACK_WEBHOOK_URL,
            json={"text": text},
            timeout=5.0,
        )
    except httpx.HTTPError:
        # A log call here would feed straight back into this sink
        pass


def _normalize_level(raw: str | None) -> str:
    level = (raw or "INFO").strip().upper()
    level = {
        "WARN": "WARNING",
        "FATAL": "CRITICAL",
    }.get(level, level)
    if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
        level = "INFO"
    return level


def configure_logging() -> None:
    global _logging_configured

    if _logging_configured:
        return
    _logging_configured = True

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    level = _normalize_level(settings.effective_log_level)

    logger.remove()
    logger.configure(extra={"name": "app"})
    logger.add(
        sys.stdout,
        level=level,
        format=LOG_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    logger.add(
        log_dir / "nft-backend.log",
        level=level,
        format=LOG_FORMAT,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )

    if settings.SLACK_WEBHOOK_URL:
        logger.add(_slack_sink, level="ERROR", enqueue=True)

    # Route stdlib loggers through Loguru; uvicorn keeps its own handlers otherwise
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in SERVER_LOGGERS:
        server_logger = logging.getLogger(logger_name)
        server_logger.handlers = [InterceptHandler()]
        server_logger.propagate = False

    # httpx logs each provider request at INFO; only show those when debugging
    if level not in {"TRACE", "DEBUG"}:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logger.__class__:
    return logger.bind(name=name)


configure_logging()
