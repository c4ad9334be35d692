"""Structured log entries for HTTP request handling."""

from __future__ import annotations

from .logger import Logger


def log_error(
    logger: Logger, error: BaseException, key: str, status: int, message: str
) -> None:
    """Log ``message`` at error level with the key, error text and HTTP status."""
    logger.with_fields(
        {"key": key, "error": str(error), "http_status": status}
    ).error(message)


def log_info(logger: Logger, key: str, status: int, message: str) -> None:
    """Log ``message`` at info level with the key and HTTP status."""
    logger.with_fields({"key": key, "http_status": status}).info(message)