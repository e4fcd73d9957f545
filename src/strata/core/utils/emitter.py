"""Synchronous event emitters.

Listeners run in registration order when ``fire`` is called. A failing
listener is logged and does not prevent delivery to the remaining ones.
"""
from __future__ import annotations

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Subscription:
    """Handle returned by :meth:`Emitter.subscribe`; call ``dispose`` to stop listening."""

    def __init__(self, dispose: Callable[[], None]) -> None:
        self._dispose = dispose
        self.disposed = False

    def dispose(self) -> None:
        if not self.disposed:
            self.disposed = True
            self._dispose()


class Emitter(Generic[T]):
    """Fan out events of type ``T`` to subscribed listeners."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._listeners: List[Listener[T]] = []

    def subscribe(self, listener: Listener[T]) -> Subscription:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_remove)

    def fire(self, event: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener for %s failed", self.name or "event")

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)


__all__ = ["Emitter", "Subscription", "Listener"]
