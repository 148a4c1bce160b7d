"""
Result type for lookups whose "not found" case has a defined fallback.

``Found`` carries the value; ``Missing`` carries nothing. Callers branch on
``isinstance(result, Missing)`` and decide their own fallback::

    result = await sessions.update(session_id)
    if isinstance(result, Missing):
        await sessions.create(session_id)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    """A lookup that matched a row."""

    value: T


@dataclass(frozen=True)
class Missing:
    """A lookup that matched nothing."""


Lookup = Found[T] | Missing
