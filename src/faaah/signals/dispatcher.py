"""Debounced dispatcher turning failure verdicts into notifications."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


class DebouncedDispatcher:
    """Fires at most one notification per cooldown window per event key.

    Features:
    - Per-key cooldown tracking (keys never block each other)
    - Forced triggers bypass the cooldown but still reset it
    - Timestamp is recorded before the side effect runs
    - Check-and-set is atomic per dispatcher

    Usage:
        dispatcher = DebouncedDispatcher(on_fire, cooldown_ms=3000)

        # When a failure is detected:
        fired = dispatcher.trigger("testFail")
    """

    def __init__(
        self,
        on_fire: Callable[[str], None],
        cooldown_ms: int = 3000,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize DebouncedDispatcher.

        Args:
            on_fire: Side effect invoked with the event key on every fire.
            cooldown_ms: Minimum interval between fires of the same key.
            clock: Millisecond clock (monotonic by default).
        """
        self._on_fire = on_fire
        self._cooldown_ms = max(0, cooldown_ms)
        self._clock = clock or monotonic_ms
        self._last_fire: dict[str, float] = {}
        self._lock = threading.Lock()

        logger.debug("DebouncedDispatcher initialized: cooldown=%dms", self._cooldown_ms)

    @property
    def cooldown_ms(self) -> int:
        """Current cooldown in milliseconds."""
        return self._cooldown_ms

    @cooldown_ms.setter
    def cooldown_ms(self, value: int) -> None:
        self._cooldown_ms = max(0, value)

    def trigger(self, event_key: str, force: bool = False) -> bool:
        """Fire the side effect unless the key is cooling down.

        Args:
            event_key: Class of notification being triggered.
            force: Fire regardless of the cooldown (manual triggers).

        Returns:
            True if the side effect ran, False if suppressed.
        """
        with self._lock:
            now = self._clock()
            last = self._last_fire.get(event_key)
            if not force and last is not None and now - last < self._cooldown_ms:
                logger.debug(
                    "Trigger suppressed (cooldown): key=%s, elapsed=%.0fms",
                    event_key,
                    now - last,
                )
                return False
            self._last_fire[event_key] = now

        try:
            self._on_fire(event_key)
        except Exception as e:
            logger.error("Notification side effect failed for %s: %s", event_key, e)
        return True

    def cooldown_remaining(self, event_key: str) -> float:
        """Milliseconds until the key may fire again, or 0."""
        with self._lock:
            last = self._last_fire.get(event_key)
        if last is None:
            return 0.0
        return max(0.0, self._cooldown_ms - (self._clock() - last))

    @property
    def key_count(self) -> int:
        """Number of keys with cooldown state."""
        return len(self._last_fire)
