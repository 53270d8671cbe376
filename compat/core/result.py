"""Result type for explicit error handling.

Every stage of a compatibility run returns either ``Ok(value)`` or
``Err(error)``; callers branch on the variant instead of catching
exceptions. Expected failures (a missing image, an unreachable catalog, a
probe that never succeeded) are data, not control flow.

Usage:
    def fetch(url: str) -> Result[bytes, HttpError]:
        ...

    match fetch(url):
        case Ok(body):
            handle(body)
        case Err(error):
            console.error(str(error))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result wrapping ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result wrapping ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
