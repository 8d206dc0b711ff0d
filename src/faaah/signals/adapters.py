"""Event source adapters feeding failure verdicts to the dispatcher.

Each adapter owns at most one feed subscription. The engine attaches
adapters on start and detaches them all on stop.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from faaah.config import Config

from .classifier import FailureClassifier
from .feeds import EventFeed, Unsubscribe
from .types import (
    FAILED_TEST_STATES,
    TEST_FAIL,
    OutputDeltaEvent,
    TaskEndEvent,
    TaskGroup,
    TerminalDataEvent,
    TestRunResult,
)

logger = logging.getLogger(__name__)

TriggerFn = Callable[[str], bool]
ConfigProvider = Callable[[], Config]


class SignalAdapter(ABC):
    """Base class for adapters bridging a host feed to the dispatcher."""

    name = "adapter"

    def __init__(
        self,
        trigger: TriggerFn,
        config_provider: ConfigProvider,
        event_key: str = TEST_FAIL,
    ):
        """Initialize adapter.

        Args:
            trigger: Dispatcher entry point, called with the event key.
            config_provider: Returns the current configuration snapshot.
            event_key: Event key triggered on failure.
        """
        self._trigger = trigger
        self._config = config_provider
        self._event_key = event_key
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def is_attached(self) -> bool:
        """True while subscribed to a feed."""
        return self._unsubscribe is not None

    def attach(self, feed: EventFeed) -> None:
        """Subscribe to a feed, replacing any previous subscription."""
        self.detach()
        self._unsubscribe = feed.subscribe(self.handle)
        logger.debug("%s adapter attached", self.name)

    def detach(self) -> None:
        """Release the feed subscription, if any."""
        if self._unsubscribe is None:
            return
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        unsubscribe()
        logger.debug("%s adapter detached", self.name)

    def handle(self, event) -> bool:
        """Process one event.

        Returns:
            True if a failure was detected and passed to the dispatcher.
        """
        if not self._is_active(self._config()):
            return False
        if not self.detect(event):
            return False
        logger.info("Failure detected by %s adapter", self.name)
        self._trigger(self._event_key)
        return True

    @abstractmethod
    def detect(self, event) -> bool:
        """Return True if the event reports a failure."""
        pass

    def _is_active(self, config: Config) -> bool:
        return config.enabled


class TaskCompletionAdapter(SignalAdapter):
    """Fires when a test-like task exits with a non-zero code.

    Works from structured exit codes only, so it ignores
    ``detect_from_terminal``.
    """

    name = "task"

    def detect(self, event: TaskEndEvent) -> bool:
        if not isinstance(event.exit_code, int) or event.exit_code == 0:
            return False
        task_name = (event.task_name or "").lower()
        return (
            "test" in task_name
            or "fail" in task_name
            or event.task_group == TaskGroup.TEST
        )


class TextSignalAdapter(SignalAdapter):
    """Base for adapters that classify raw text."""

    def __init__(
        self,
        trigger: TriggerFn,
        config_provider: ConfigProvider,
        classifier: FailureClassifier,
        event_key: str = TEST_FAIL,
    ):
        super().__init__(trigger, config_provider, event_key)
        self._classifier = classifier

    def _is_active(self, config: Config) -> bool:
        return config.enabled and config.detect_from_terminal

    def _classify(self, text: str) -> bool:
        match = self._classifier.match(text)
        if match is None:
            return False
        logger.debug("%s matched %s: %s", self.name, match.pattern, match.snippet)
        return True


class TerminalStreamAdapter(TextSignalAdapter):
    """Classifies each terminal output chunk on its own.

    Chunks are never buffered, so a keyword split across two chunks
    is missed.
    """

    name = "terminal"

    def detect(self, event: TerminalDataEvent) -> bool:
        return self._classify(event.data)


class OutputPanelAdapter(TextSignalAdapter):
    """Classifies text inserted into output panels.

    Fallback for run tools that write to a panel instead of a terminal.
    Whether a resource is a panel is guessed from its URI.
    """

    name = "output"

    def detect(self, event: OutputDeltaEvent) -> bool:
        if not self.is_panel(event.resource_uri, self._config().debug_channel):
            return False
        return self._classify(event.inserted_text)

    @staticmethod
    def is_panel(resource_uri: str, debug_channel: str) -> bool:
        """Best-effort check that a URI names an output panel.

        Args:
            resource_uri: Resource identifier of the changed document.
            debug_channel: Name of the engine's own log panel, always excluded.
        """
        if not resource_uri:
            return False
        scheme = resource_uri.split(":", 1)[0] if ":" in resource_uri else ""
        if debug_channel and debug_channel in resource_uri:
            return False
        if scheme == "file" and "output" not in resource_uri:
            return False
        return (
            scheme == "output"
            or "output" in resource_uri
            or "Code" in resource_uri
        )


class TestResultsAdapter(SignalAdapter):
    """Fires when the latest test run has a failed or errored test."""

    __test__ = False  # not a pytest class

    name = "test_results"

    def detect(self, event: TestRunResult) -> bool:
        return any(state in FAILED_TEST_STATES for state in event.states)
