"""Declarative validation of dataclass inputs with English messages."""

from __future__ import annotations

import dataclasses
import re
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Callable

_UUID4 = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"
)
_SIZED = (str, bytes, list, tuple, dict, set, frozenset)


class Validator(ABC):
    """Checks an input value against its rules."""

    @abstractmethod
    def validate(self, value: Any) -> list[str]:
        """Return a message for every rule the value breaks; empty when valid."""


def _required(label: str, value: Any, _param: str) -> str | None:
    if value is None or (isinstance(value, (str, bytes, int, float)) and not value):
        return f"{label} is a required field"
    return None


def _greater_than(label: str, value: Any, param: str) -> str | None:
    if not param:
        raise ValueError("rule 'gt' needs a parameter")
    if isinstance(value, _SIZED):
        limit = int(param)
        if len(value) > limit:
            return None
        unit = "character" if limit == 1 else "characters"
        return f"{label} must be greater than {param} {unit} in length"
    if isinstance(value, (int, float)) and value > float(param):
        return None
    return f"{label} must be greater than {param}"


def _uuid4(label: str, value: Any, _param: str) -> str | None:
    if isinstance(value, str) and _UUID4.fullmatch(value):
        return None
    return f"{label} must be a valid version 4 UUID"


_RULES: dict[str, Callable[[str, Any, str], str | None]] = {
    "required": _required,
    "gt": _greater_than,
    "uuid4": _uuid4,
}


def _camel_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


class FieldValidator(Validator):
    """Validate dataclass fields by the rules in their ``validate`` metadata.

    Rules are comma separated (``required``, ``gt=N``, ``uuid4``) and checked in
    order; a field reports only its first broken rule. Messages name the field by
    its ``label`` metadata, or by its name in CamelCase.
    """

    def validate(self, value: Any) -> list[str]:
        if not dataclasses.is_dataclass(value) or isinstance(value, type):
            raise TypeError(f"cannot validate {type(value).__name__}: not a dataclass instance")
        messages = []
        for item in dataclasses.fields(value):
            rules = item.metadata.get("validate")
            if not rules:
                continue
            label = item.metadata.get("label") or _camel_case(item.name)
            message = self._check(label, getattr(value, item.name), rules)
            if message is not None:
                messages.append(message)
        return messages

    @staticmethod
    def _check(label: str, value: Any, rules: str) -> str | None:
        for rule in rules.split(","):
            name, _, param = rule.strip().partition("=")
            check = _RULES.get(name)
            if check is None:
                raise ValueError(f"undefined validation rule {name!r}")
            message = check(label, value, param)
            if message is not None:
                return message
        return None


class ValidatorInstance(IntEnum):
    """Available validator implementations."""

    FIELD = 0


class InvalidValidatorInstanceError(ValueError):
    """Raised for an unknown validator instance."""

    def __init__(self, message: str = "invalid validator instance") -> None:
        super().__init__(message)


def new_validator(instance: int) -> Validator:
    """Build the validator selected by ``instance``."""
    try:
        ValidatorInstance(instance)
    except ValueError:
        raise InvalidValidatorInstanceError() from None
    return FieldValidator()