"""HTTP actions that decode requests, run the use cases and encode the replies."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from werkzeug.wrappers import Request, Response

from .account_usecases import (
    CreateAccountInput,
    CreateAccountOutput,
    FindAccountBalanceOutput,
    FindAllAccountOutput,
)
from .api_logging import log_error, log_info
from .domain import (
    AccountDestinationNotFoundError,
    AccountNotFoundError,
    AccountOriginNotFoundError,
    InsufficientBalanceError,
    is_valid_uuid,
)
from .logger import Logger
from .responses import (
    ErrorResponse,
    InvalidInputError,
    ParameterInvalidError,
    SuccessResponse,
)
from .transfer_usecases import (
    CreateTransferInput,
    CreateTransferOutput,
    FindAllTransferOutput,
)
from .validation import Validator

_OK = 200
_CREATED = 201
_BAD_REQUEST = 400
_UNPROCESSABLE_ENTITY = 422
_INTERNAL_SERVER_ERROR = 500

_JSON_WHITESPACE = " \t\n\r"
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_SYNTAX_CONTEXTS = {
    "Expecting value": "looking for beginning of value",
    "Expecting property name enclosed in double quotes": "looking for beginning of object key string",
    "Expecting ':' delimiter": "after object key",
    "Expecting ',' delimiter": "after value",
}

InputT = TypeVar("InputT")


class _BodyError(ValueError):
    """The request body could not be decoded into the expected input."""


class _CreateAccountUseCase(Protocol):
    def execute(self, data: CreateAccountInput) -> CreateAccountOutput: ...


class _CreateTransferUseCase(Protocol):
    def execute(self, data: CreateTransferInput) -> CreateTransferOutput: ...


class _FindAccountBalanceUseCase(Protocol):
    def execute(self, account_id: str) -> FindAccountBalanceOutput: ...


class _FindAllAccountUseCase(Protocol):
    def execute(self) -> list[FindAllAccountOutput]: ...


class _FindAllTransferUseCase(Protocol):
    def execute(self) -> list[FindAllTransferOutput]: ...


def _quote_char(char: str) -> str:
    if char == "'":
        return "'\\''"
    if char == '"':
        return "'\"'"
    return "'" + json.dumps(char)[1:-1] + "'"


def _syntax_message(exc: json.JSONDecodeError) -> str:
    if exc.pos >= len(exc.doc) or exc.msg.startswith("Unterminated string"):
        return "unexpected EOF"
    char = _quote_char(exc.doc[exc.pos])
    if exc.msg.startswith("Invalid control character"):
        return f"invalid character {char} in string literal"
    context = _SYNTAX_CONTEXTS.get(exc.msg)
    if context is None:
        return f"invalid character {char}: {exc.msg}"
    return f"invalid character {char} {context}"


def _reject_constant(name: str) -> Any:
    if name.startswith("-"):
        raise _BodyError(f"invalid character {_quote_char(name[1])} in numeric literal")
    raise _BodyError(f"invalid character {_quote_char(name[0])} looking for beginning of value")


def _parse(body: bytes) -> Any:
    """Decode the first JSON value in ``body``; anything after it is ignored."""
    text = body.decode("utf-8", errors="replace")
    start = len(text) - len(text.lstrip(_JSON_WHITESPACE))
    if start == len(text):
        raise _BodyError("EOF")
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    try:
        value, _ = decoder.raw_decode(text, start)
    except json.JSONDecodeError as exc:
        raise _BodyError(_syntax_message(exc)) from exc
    return value


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    return "object"


def _convert(owner: str, target: dataclasses.Field, item: Any) -> Any:
    expected = type(target.default)
    where = f"{owner}.{target.name}"
    if expected is str:
        if isinstance(item, str):
            return item
        raise _BodyError(
            f"json: cannot unmarshal {_kind(item)} into field {where} of type string"
        )
    if expected is int:
        if (
            isinstance(item, int)
            and not isinstance(item, bool)
            and _INT64_MIN <= item <= _INT64_MAX
        ):
            return item
        kind = _kind(item)
        if kind == "number":
            kind = f"number {item}"
        raise _BodyError(f"json: cannot unmarshal {kind} into field {where} of type int64")
    return item


def _decode_input(body: bytes, cls: type[InputT]) -> InputT:
    """Build ``cls`` from a JSON object, matching keys exactly or else case-insensitively."""
    value = _parse(body)
    owner = cls.__name__
    if value is None:
        return cls()
    if not isinstance(value, dict):
        raise _BodyError(f"json: cannot unmarshal {_kind(value)} into value of type {owner}")
    fields = dataclasses.fields(cls)
    exact = {item.name: item for item in fields}
    folded = {item.name.lower(): item for item in fields}
    values: dict[str, Any] = {}
    for key, item in value.items():
        target = exact.get(key) or folded.get(key.lower())
        if target is None or item is None:
            continue
        values[target.name] = _convert(owner, target, item)
    return cls(**values)


def _error(error: BaseException, status: int) -> Response:
    return ErrorResponse.from_error(error, status).to_response()


@dataclass(frozen=True)
class CreateAccountAction:
    """Open an account from a JSON request body."""

    use_case: _CreateAccountUseCase
    logger: Logger
    validator: Validator

    _LOG_KEY = "create_account"

    def execute(self, request: Request) -> Response:
        try:
            data = _decode_input(request.get_data(), CreateAccountInput)
        except _BodyError as exc:
            log_error(self.logger, exc, self._LOG_KEY, _BAD_REQUEST, "error when decoding json")
            return _error(exc, _BAD_REQUEST)

        messages = self.validator.validate(data)
        if messages:
            log_error(
                self.logger, InvalidInputError(), self._LOG_KEY, _BAD_REQUEST, "invalid input"
            )
            return ErrorResponse(list(messages), _BAD_REQUEST).to_response()

        try:
            output = self.use_case.execute(data)
        except Exception as exc:
            log_error(
                self.logger,
                exc,
                self._LOG_KEY,
                _INTERNAL_SERVER_ERROR,
                "error when creating a new account",
            )
            return _error(exc, _INTERNAL_SERVER_ERROR)

        log_info(self.logger, self._LOG_KEY, _CREATED, "success creating account")
        return SuccessResponse(output, _CREATED).to_response()


@dataclass(frozen=True)
class CreateTransferAction:
    """Move money between accounts from a JSON request body."""

    use_case: _CreateTransferUseCase
    logger: Logger
    validator: Validator

    _LOG_KEY = "create_transfer"
    _LOG_MESSAGE = "creating a new transfer"
    _UNPROCESSABLE = (
        InsufficientBalanceError,
        AccountOriginNotFoundError,
        AccountDestinationNotFoundError,
    )

    def execute(self, request: Request) -> Response:
        try:
            data = _decode_input(request.get_data(), CreateTransferInput)
        except _BodyError as exc:
            log_error(self.logger, exc, self._LOG_KEY, _BAD_REQUEST, self._LOG_MESSAGE)
            return _error(exc, _BAD_REQUEST)

        messages = self._validate(data)
        if messages:
            log_error(
                self.logger, InvalidInputError(), self._LOG_KEY, _BAD_REQUEST, self._LOG_MESSAGE
            )
            return ErrorResponse(messages, _BAD_REQUEST).to_response()

        try:
            output = self.use_case.execute(data)
        except self._UNPROCESSABLE as exc:
            log_error(self.logger, exc, self._LOG_KEY, _UNPROCESSABLE_ENTITY, self._LOG_MESSAGE)
            return _error(exc, _UNPROCESSABLE_ENTITY)
        except Exception as exc:
            log_error(self.logger, exc, self._LOG_KEY, _INTERNAL_SERVER_ERROR, self._LOG_MESSAGE)
            return _error(exc, _INTERNAL_SERVER_ERROR)

        log_info(self.logger, self._LOG_KEY, _CREATED, self._LOG_MESSAGE)
        return SuccessResponse(output, _CREATED).to_response()

    def _validate(self, data: CreateTransferInput) -> list[str]:
        messages = []
        both_empty = not data.account_origin_id and not data.account_destination_id
        if not both_empty and data.account_origin_id == data.account_destination_id:
            messages.append("account origin equals destination account")
        messages.extend(self.validator.validate(data))
        return messages


@dataclass(frozen=True)
class FindAccountBalanceAction:
    """Report the balance of the account named by the ``account_id`` query parameter."""

    use_case: _FindAccountBalanceUseCase
    logger: Logger

    _LOG_KEY = "find_balance_account"

    def execute(self, request: Request) -> Response:
        account_id = request.args.get("account_id", "")
        if not is_valid_uuid(account_id):
            error = ParameterInvalidError()
            log_error(self.logger, error, self._LOG_KEY, _BAD_REQUEST, "invalid parameter")
            return _error(error, _BAD_REQUEST)

        try:
            output = self.use_case.execute(account_id)
        except AccountNotFoundError as exc:
            log_error(
                self.logger, exc, self._LOG_KEY, _BAD_REQUEST, "error fetching account balance"
            )
            return _error(exc, _BAD_REQUEST)
        except Exception as exc:
            log_error(
                self.logger,
                exc,
                self._LOG_KEY,
                _INTERNAL_SERVER_ERROR,
                "error when returning account balance",
            )
            return _error(exc, _INTERNAL_SERVER_ERROR)

        log_info(self.logger, self._LOG_KEY, _OK, "success when returning account balance")
        return SuccessResponse(output, _OK).to_response()


@dataclass(frozen=True)
class FindAllAccountAction:
    """List every account."""

    use_case: _FindAllAccountUseCase
    logger: Logger

    _LOG_KEY = "find_all_account"

    def execute(self, request: Request) -> Response:
        try:
            output = self.use_case.execute()
        except Exception as exc:
            log_error(
                self.logger,
                exc,
                self._LOG_KEY,
                _INTERNAL_SERVER_ERROR,
                "error when returning account list",
            )
            return _error(exc, _INTERNAL_SERVER_ERROR)

        log_info(self.logger, self._LOG_KEY, _OK, "success when returning account list")
        return SuccessResponse(output, _OK).to_response()


@dataclass(frozen=True)
class FindAllTransferAction:
    """List every transfer."""

    use_case: _FindAllTransferUseCase
    logger: Logger

    _LOG_KEY = "find_all_transfer"

    def execute(self, request: Request) -> Response:
        try:
            output = self.use_case.execute()
        except Exception as exc:
            log_error(
                self.logger,
                exc,
                self._LOG_KEY,
                _INTERNAL_SERVER_ERROR,
                "error when returning the transfer list",
            )
            return _error(exc, _INTERNAL_SERVER_ERROR)

        log_info(self.logger, self._LOG_KEY, _OK, "success when returning transfer list")
        return SuccessResponse(output, _OK).to_response()


def health_check(request: Request) -> Response:
    """Answer 200 with an empty body."""
    return Response(status=_OK)