"""Subscribe/unsubscribe contract for host event feeds."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)

Unsubscribe = Callable[[], None]


class EventFeed(Protocol[T_contra]):
    """Protocol for a host-delivered stream of events."""

    def subscribe(self, callback: Callable[[T_contra], None]) -> Unsubscribe:
        """Register a listener; returns a callable that removes it."""
        ...


class Feed(Generic[T]):
    """In-process EventFeed for hosts that push events themselves.

    Listener exceptions are logged and never reach the emitter.
    """

    def __init__(self, name: str = "feed"):
        self._name = name
        self._listeners: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def emit(self, event: T) -> None:
        """Deliver an event to every listener in subscription order."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error("Listener on %s failed: %s", self._name, e)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


@dataclass
class HostFeeds:
    """Event feeds offered by the host.

    A feed the host does not support is left as None.
    """

    tasks: Optional[EventFeed[Any]] = None
    terminal: Optional[EventFeed[Any]] = None
    output: Optional[EventFeed[Any]] = None
    test_results: Optional[EventFeed[Any]] = None

    @classmethod
    def create(cls) -> "HostFeeds":
        """Create a bundle of in-process feeds."""
        return cls(
            tasks=Feed("tasks"),
            terminal=Feed("terminal"),
            output=Feed("output"),
            test_results=Feed("test_results"),
        )
