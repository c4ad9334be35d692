"""WSGI middleware that logs every request and its response."""

from __future__ import annotations

import io
import time
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from werkzeug.wsgi import get_input_stream

from .api_logging import log_error
from .logger import Logger

_LOG_KEY = "logger_middleware"
_REQUEST_KEY = "api_request"
_RESPONSE_KEY = "api_response"


def _read_payload(environ: dict[str, Any]) -> str:
    """Read the request body, put it back for the application, and return it trimmed."""
    if environ.get("wsgi.input") is None:
        raise ValueError("body not defined")
    try:
        payload = get_input_stream(environ).read()
    except OSError as exc:
        raise ValueError(f"error read body: {exc}") from exc
    environ["wsgi.input"] = io.BytesIO(payload)
    environ["CONTENT_LENGTH"] = str(len(payload))
    return payload.decode("utf-8", errors="replace").strip()


class RequestLoggingMiddleware:
    """Log the payload of each request and the status and duration of its response."""

    def __init__(self, app: Callable[..., Iterable[bytes]], logger: Logger) -> None:
        self.app = app
        self.logger = logger

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        started = time.perf_counter()

        try:
            payload = _read_payload(environ)
        except ValueError as exc:
            log_error(self.logger, exc, _LOG_KEY, 400, "error when getting payload")
            start_response("200 OK", [("Content-Length", "0")])
            return []

        path = environ.get("PATH_INFO", "")
        method = environ.get("REQUEST_METHOD", "")
        self.logger.with_fields(
            {
                "key": _REQUEST_KEY,
                "payload": payload,
                "url": path,
                "http_method": method,
            }
        ).info("started handling request")

        statuses: list[str] = []

        def capture(status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Any:
            statuses.append(status)
            return start_response(status, headers, exc_info)

        result = self.app(environ, capture)
        return self._stream(result, statuses, path, method, started)

    def _stream(
        self,
        result: Iterable[bytes],
        statuses: list[str],
        path: str,
        method: str,
        started: float,
    ) -> Iterator[bytes]:
        try:
            yield from result
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()
            status = int(statuses[-1].split(None, 1)[0]) if statuses else 0
            self.logger.with_fields(
                {
                    "key": _RESPONSE_KEY,
                    "url": path,
                    "http_method": method,
                    "http_status": status,
                    "response_time": time.perf_counter() - started,
                }
            ).info("completed handling request")