"""Single-slot reactive value shared between the editor services and the UI."""
from __future__ import annotations

import logging
from typing import Callable, Generic, List, Optional, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class Observable(Generic[T]):
    """
    Holds the last known value of some piece of state and notifies subscribers
    when it changes.

    - ``set`` only notifies when the new value differs from the stored one.
    - Subscribers run synchronously in subscription order; one failing
      subscriber is logged and does not stop the others.
    - ``subscribe`` calls back immediately when a value is already held
      (``None`` means "no value").
    """

    def __init__(self, initial: Optional[T] = None) -> None:
        self._value: Optional[T] = initial
        self._subscribers: List[Callable[[Optional[T]], None]] = []

    def get(self) -> Optional[T]:
        return self._value

    def set(self, value: Optional[T]) -> None:
        if value == self._value:
            return
        self._value = value
        self._notify(value)

    def subscribe(self, callback: Callable[[Optional[T]], None]) -> None:
        self._subscribers.append(callback)
        if self._value is not None:
            self._invoke(callback, self._value)

    def unsubscribe(self, callback: Callable[[Optional[T]], None]) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def _notify(self, value: Optional[T]) -> None:
        # Copy so subscribers may (un)subscribe while being notified.
        for callback in list(self._subscribers):
            self._invoke(callback, value)

    @staticmethod
    def _invoke(callback: Callable[[Optional[T]], None], value: Optional[T]) -> None:
        try:
            callback(value)
        except Exception:
            log.exception(f"Observable subscriber {callback!r} failed")

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"
