"""Synchronous observer registry used to broadcast store changes."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class SubscriptionBus:
    """Register zero-argument callbacks and invoke them on every change.

    Callbacks run synchronously and their exceptions propagate to whoever
    triggered the notification. A ``notify()`` issued while callbacks are
    running is deferred to a follow-up round instead of recursing.
    """

    def __init__(self, *, max_rounds: int = 8) -> None:
        if max_rounds <= 0:
            raise ValueError("max_rounds must be positive")
        self._subscribers: dict[Callback, None] = {}
        self._max_rounds = max_rounds
        self._notifying = False
        self._pending = False

    def subscribe(self, callback: Callback) -> Callable[[], None]:
        """Register ``callback`` and return a handle that unregisters it."""

        self._subscribers[callback] = None
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Callback) -> None:
        self._subscribers.pop(callback, None)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, callback: object) -> bool:
        return callback in self._subscribers

    def notify(self) -> None:
        if self._notifying:
            self._pending = True
            return

        self._notifying = True
        try:
            rounds = 0
            self._pending = True
            while self._pending:
                if rounds >= self._max_rounds:
                    logger.warning(
                        "Stopping notification after %s rounds; a subscriber keeps "
                        "mutating the store from its callback",
                        rounds,
                    )
                    break
                self._pending = False
                rounds += 1
                for callback in list(self._subscribers):
                    if callback in self._subscribers:
                        callback()
        finally:
            self._notifying = False
            self._pending = False


__all__ = ["Callback", "SubscriptionBus"]
