"""JSON HTTP responses for successes and errors."""

from __future__ import annotations

import dataclasses
import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from werkzeug.wrappers import Response

_CONTENT_TYPE = "application/json"
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class ParameterInvalidError(Exception):
    """A request parameter is malformed."""

    def __init__(self, message: str = "parameter invalid") -> None:
        super().__init__(message)


class InvalidInputError(Exception):
    """A request body breaks the input rules."""

    def __init__(self, message: str = "invalid input") -> None:
        super().__init__(message)


def _encode_float(number: float) -> str:
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"unsupported value: {number!r}")
    if number == 0:
        return "-0" if math.copysign(1.0, number) < 0 else "0"
    magnitude = abs(number)
    if magnitude < 1e-6 or magnitude >= 1e21:
        return repr(number).replace("e-0", "e-")
    if number.is_integer():
        return str(int(number))
    return format(Decimal(repr(number)), "f")


def _encode_string(text: str) -> str:
    encoded = json.dumps(text, ensure_ascii=False)
    for char, escape in _HTML_ESCAPES.items():
        encoded = encoded.replace(char, escape)
    return encoded


def _encode(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _encode_float(value)
    if isinstance(value, str):
        return _encode_string(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        members = (
            (item.name, getattr(value, item.name)) for item in dataclasses.fields(value)
        )
        return "{" + ",".join(f"{_encode_string(k)}:{_encode(v)}" for k, v in members) + "}"
    if isinstance(value, Mapping):
        members = sorted((str(k), v) for k, v in value.items())
        return "{" + ",".join(f"{_encode_string(k)}:{_encode(v)}" for k, v in members) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode(item) for item in value) + "]"
    raise TypeError(f"cannot encode {type(value).__name__} as JSON")


def encode_json(value: Any) -> str:
    """Encode ``value`` as compact JSON, dataclasses as objects in field order."""
    return _encode(value)


def _json_response(payload: Any, status: int) -> Response:
    return Response(encode_json(payload) + "\n", status=status, content_type=_CONTENT_TYPE)


@dataclass
class ErrorResponse:
    """An error reply carrying one or more messages."""

    errors: list[str]
    status: int

    @classmethod
    def from_error(cls, error: BaseException, status: int) -> ErrorResponse:
        """Build a reply holding the message of ``error``."""
        return cls([str(error)], status)

    def to_response(self) -> Response:
        """Render as a JSON HTTP response."""
        return _json_response({"errors": list(self.errors)}, self.status)


@dataclass
class SuccessResponse:
    """A successful reply carrying a result."""

    result: Any
    status: int

    def to_response(self) -> Response:
        """Render as a JSON HTTP response."""
        return _json_response(self.result, self.status)