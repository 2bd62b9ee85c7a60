"""Exact-class exception-to-error-code mapper.

Classifies exceptions raised by resumed computations into user-defined error
codes by exact class match (`type(exc) in mapper`).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import cast

ExceptionMapper = dict[type[BaseException], str]
ERROR_CODE_RE = re.compile(r'^[A-Z][A-Z0-9_]*$')
EXCEPTION_NAME_RE = re.compile(r'^[A-Z][A-Za-z0-9_]*(Error|Exception)$')


def resolve_exception_error_code(
    exc: BaseException,
    mapper: Mapping[type[BaseException], str] | None,
    default: str,
) -> str:
    """Resolve an exception to an error code: exact mapper lookup, then default."""
    if not isinstance(mapper, Mapping):
        return default
    code = mapper.get(type(exc))
    return code if isinstance(code, str) else default


def validate_error_code_string(
    value: object,
    *,
    field_name: str,
) -> str | None:
    """Validate normalized error-code format."""
    if not isinstance(value, str) or not value:
        return f"{field_name} must be a non-empty string, got {value!r}"
    if EXCEPTION_NAME_RE.fullmatch(value) is not None:
        return (
            f"{field_name} '{value}' looks like an exception class name; "
            "use UPPER_SNAKE_CASE code names"
        )
    if ERROR_CODE_RE.fullmatch(value) is None:
        return (
            f"{field_name} '{value}' is invalid; expected UPPER_SNAKE_CASE "
            "(e.g. TIMEOUT_EXCEEDED)"
        )
    return None


def validate_exception_mapper(
    mapper: object,
) -> list[str]:
    """Validate mapper entries. Returns error messages (empty = valid)."""
    if not isinstance(mapper, Mapping):
        return [
            (
                'exception_mapper must be a mapping of '
                '{ExceptionClass: "ERROR_CODE"} entries'
            )
        ]

    errors: list[str] = []
    exception_code_map = cast(Mapping[object, object], mapper)
    for key, value in exception_code_map.items():
        key_label = key.__name__ if isinstance(key, type) else repr(key)
        if not isinstance(key, type) or not issubclass(key, BaseException):
            errors.append(f"Mapper key {key!r} is not a BaseException subclass")
        value_error = validate_error_code_string(
            value,
            field_name=f"Mapper value for {key_label}",
        )
        if value_error is not None:
            errors.append(value_error)
    return errors
