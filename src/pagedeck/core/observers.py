"""
PageDeck - Change Listeners

Ordered registry of zero-argument change listeners with handle-based removal.
"""

import itertools
from collections.abc import Callable

Listener = Callable[[], None]


class ListenerHandle:
    """Handle returned by a registration; calling it unsubscribes."""

    __slots__ = ("_registry", "_key")

    def __init__(self, registry: "ListenerRegistry", key: int) -> None:
        self._registry = registry
        self._key = key

    @property
    def active(self) -> bool:
        return self._registry.contains(self)

    def unsubscribe(self) -> bool:
        return self._registry.remove(self)

    def __call__(self) -> bool:
        return self.unsubscribe()


class ListenerRegistry:
    """Listeners are invoked synchronously, in registration order.

    Exceptions raised by a listener propagate to the caller of notify().
    """

    def __init__(self) -> None:
        self._listeners: dict[int, Listener] = {}
        self._keys = itertools.count()

    def add(self, callback: Listener) -> ListenerHandle:
        key = next(self._keys)
        self._listeners[key] = callback
        return ListenerHandle(self, key)

    def remove(self, handle: ListenerHandle) -> bool:
        """Remove the listener behind ``handle``.

        Returns:
            True if a listener was removed, False if the handle was stale or
            belongs to another registry.
        """
        if handle._registry is not self:
            return False
        return self._listeners.pop(handle._key, None) is not None

    def contains(self, handle: ListenerHandle) -> bool:
        return handle._registry is self and handle._key in self._listeners

    def notify(self) -> None:
        # Snapshot so listeners may unsubscribe while being notified
        for listener in list(self._listeners.values()):
            listener()

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)
