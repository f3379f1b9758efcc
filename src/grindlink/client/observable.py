"""Minimal observer abstraction for client-side views."""

from typing import Callable


class Observable:
    """Holds observers and notifies them after every state change."""

    def __init__(self) -> None:
        self._observers: list[Callable] = []

    def subscribe(self, observer: Callable) -> Callable[[], None]:
        """Register `observer(view)`; returns a function that removes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(self)
