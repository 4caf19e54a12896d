"""
Snapshot channels for presentation code.

A Channel holds the most recent snapshot of some state and pushes every
new one to its subscribers. Subscribers get the latest snapshot as soon as
they subscribe and must unsubscribe on teardown. The only delivery
guarantee is that the most recent snapshot wins.
"""

from collections.abc import Callable
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by Channel.subscribe()."""

    def __init__(self, channel: "Channel", callback: Callable) -> None:
        self._channel = channel
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving snapshots. Safe to call more than once."""
        if self.active:
            self._channel._remove(self._callback)
            self.active = False


class Channel(Generic[T]):
    """Latest-value publish/subscribe channel."""

    def __init__(self, name: str, initial: T | None = None) -> None:
        self.name = name
        self._latest: T | None = initial
        self._subscribers: list[Callable[[T], None]] = []

    @property
    def latest(self) -> T | None:
        return self._latest

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        """
        Register a callback and immediately deliver the latest snapshot.

        Args:
            callback: Called with each new snapshot

        Returns:
            Subscription used to unsubscribe
        """
        self._subscribers.append(callback)
        if self._latest is not None:
            self._deliver(callback, self._latest)
        return Subscription(self, callback)

    def publish(self, snapshot: T) -> None:
        """Store the snapshot and push it to every subscriber."""
        self._latest = snapshot
        for callback in list(self._subscribers):
            self._deliver(callback, snapshot)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _deliver(self, callback: Callable[[T], None], snapshot: T) -> None:
        try:
            callback(snapshot)
        except Exception:
            logger.exception("subscriber_failed", channel=self.name)

    def _remove(self, callback: Callable) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass
