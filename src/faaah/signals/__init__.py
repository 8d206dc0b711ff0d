"""Failure detection from task, terminal, output-panel and test events."""

from .types import (
    EVENT_REGISTRY,
    FAILED_TEST_STATES,
    FAILURE_PATTERNS,
    TEST_FAIL,
    EventSpec,
    MatchResult,
    OutputDeltaEvent,
    TaskEndEvent,
    TaskGroup,
    TerminalDataEvent,
    TestResultState,
    TestRunResult,
)
from .classifier import FailureClassifier
from .dispatcher import DebouncedDispatcher
from .feeds import EventFeed, Feed, HostFeeds
from .adapters import (
    OutputPanelAdapter,
    SignalAdapter,
    TaskCompletionAdapter,
    TerminalStreamAdapter,
    TestResultsAdapter,
)

__all__ = [
    "EVENT_REGISTRY",
    "FAILED_TEST_STATES",
    "FAILURE_PATTERNS",
    "TEST_FAIL",
    "EventSpec",
    "MatchResult",
    "OutputDeltaEvent",
    "TaskEndEvent",
    "TaskGroup",
    "TerminalDataEvent",
    "TestResultState",
    "TestRunResult",
    "FailureClassifier",
    "DebouncedDispatcher",
    "EventFeed",
    "Feed",
    "HostFeeds",
    "SignalAdapter",
    "TaskCompletionAdapter",
    "TerminalStreamAdapter",
    "OutputPanelAdapter",
    "TestResultsAdapter",
]
