"""Minimal Ok/Err result type for operations that report failure as a value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeGuard, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(slots=True, frozen=True)
class Ok(Generic[T]):
    ok_value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False


@dataclass(slots=True, frozen=True)
class Err(Generic[E]):
    err_value: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True


Result: TypeAlias = Union[Ok[T], Err[E]]


def is_ok(result: Ok[Any] | Err[Any]) -> TypeGuard[Ok[Any]]:
    return isinstance(result, Ok)


def is_err(result: Ok[Any] | Err[Any]) -> TypeGuard[Err[Any]]:
    return isinstance(result, Err)
