"""Thread-safe compute-once primitives for process-wide cached facts."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


class OnceCell(Generic[T]):
    """Lazily computed value, initialized at most once even under concurrent access.

    A failing initializer leaves the cell empty so the error surfaces to every
    caller instead of a half-written value.
    """

    __slots__ = ("_initializer", "_is_set", "_lock", "_value")

    def __init__(self, initializer: Callable[[], T]) -> None:
        self._initializer = initializer
        self._lock = threading.Lock()
        self._is_set = False
        self._value: T | None = None

    @property
    def is_set(self) -> bool:
        return self._is_set

    def get(self) -> T:
        if self._is_set:
            return self._value  # type: ignore[return-value]
        with self._lock:
            if not self._is_set:
                self._value = self._initializer()
                self._is_set = True
            return self._value  # type: ignore[return-value]


__all__ = ["OnceCell"]
