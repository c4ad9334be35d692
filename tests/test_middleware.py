from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request, Response

from banktransfer.logger import Logger
from banktransfer.middleware import RequestLoggingMiddleware


class RecordingLogger(Logger):
    def __init__(self, entries=None, fields=None):
        self.entries = entries if entries is not None else []
        self.fields = dict(fields or {})

    def _record(self, level, message, args):
        text = message % args if args else message
        self.entries.append((level, text, dict(self.fields)))

    def info(self, message, *args):
        self._record("info", message, args)

    def warning(self, message, *args):
        self._record("warning", message, args)

    def error(self, message, *args):
        self._record("error", message, args)

    def fatal(self, *args):
        raise SystemExit(1)

    def with_fields(self, fields):
        return RecordingLogger(self.entries, {**self.fields, **fields})

    def with_error(self, error):
        return self.with_fields({"error": str(error)})


class StartResponse:
    def __init__(self):
        self.calls = []

    def __call__(self, status, headers, exc_info=None):
        self.calls.append((status, headers))
        return lambda data: None


def echo_app(environ, start_response):
    body = Request(environ).get_data()
    return Response(body, status=201)(environ, start_response)


def test_body_reaches_application_and_is_logged():
    payload = b'  {"name": "test"}\n'
    logger = RecordingLogger()
    environ = EnvironBuilder(path="/v1/accounts", method="POST", data=payload).get_environ()
    start = StartResponse()

    body = b"".join(RequestLoggingMiddleware(echo_app, logger)(environ, start))

    assert body == payload
    assert start.calls[0][0].startswith("201")
    level, message, fields = logger.entries[0]
    assert (level, message) == ("info", "started handling request")
    assert fields == {
        "key": "api_request",
        "payload": payload.decode().strip(),
        "url": "/v1/accounts",
        "http_method": "POST",
    }


def test_response_is_logged_with_status_and_time():
    logger = RecordingLogger()
    environ = EnvironBuilder(path="/v1/transfers", method="GET").get_environ()

    list(RequestLoggingMiddleware(echo_app, logger)(environ, StartResponse()))

    assert len(logger.entries) == 2
    level, message, fields = logger.entries[1]
    assert (level, message) == ("info", "completed handling request")
    assert fields["key"] == "api_response"
    assert fields["url"] == "/v1/transfers"
    assert fields["http_method"] == "GET"
    assert fields["http_status"] == 201
    assert fields["response_time"] >= 0


def test_empty_body_logs_empty_payload():
    logger = RecordingLogger()
    environ = EnvironBuilder(path="/v1/health", method="GET").get_environ()

    body = b"".join(RequestLoggingMiddleware(echo_app, logger)(environ, StartResponse()))

    assert body == b""
    assert logger.entries[0][2]["payload"] == ""


def test_missing_body_is_logged_as_error_and_app_skipped():
    called = []

    def app(environ, start_response):
        called.append(True)
        return []

    logger = RecordingLogger()
    environ = {"REQUEST_METHOD": "GET", "PATH_INFO": "/v1/accounts"}

    body = b"".join(RequestLoggingMiddleware(app, logger)(environ, StartResponse()))

    assert body == b""
    assert called == []
    assert logger.entries == [
        (
            "error",
            "error when getting payload",
            {"key": "logger_middleware", "error": "body not defined", "http_status": 400},
        )
    ]


def test_inner_iterable_is_closed():
    closed = []

    class Body:
        def __iter__(self):
            return iter([b"ok"])

        def close(self):
            closed.append(True)

    def app(environ, start_response):
        start_response("200 OK", [])
        return Body()

    environ = EnvironBuilder(path="/", method="GET").get_environ()

    body = b"".join(RequestLoggingMiddleware(app, RecordingLogger())(environ, StartResponse()))

    assert body == b"ok"
    assert closed == [True]