"""Event keys, failure patterns and host event records."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum


@dataclass(frozen=True)
class EventSpec:
    """Registry entry for a class of failure notification."""

    key: str
    default_resource: str  # Resolved against the media directory
    description: str


TEST_FAIL = "testFail"

EVENT_REGISTRY: dict[str, EventSpec] = {
    TEST_FAIL: EventSpec(
        key=TEST_FAIL,
        default_resource="faaah.wav",
        description="A test run, build or script failed",
    ),
}


@dataclass
class MatchResult:
    """Result of classifying a text fragment."""

    pattern: str  # Pattern that matched
    snippet: str  # Context around match


class TaskGroup(Enum):
    """Task group reported by the task runner."""

    BUILD = "build"
    TEST = "test"
    CLEAN = "clean"
    REBUILD = "rebuild"
    NONE = "none"


class TestResultState(IntEnum):
    """Per-test state codes of the host test-results feed."""

    __test__ = False  # not a pytest class

    QUEUED = 1
    RUNNING = 2
    PASSED = 3
    FAILED = 4
    SKIPPED = 5
    ERRORED = 6


FAILED_TEST_STATES = frozenset({TestResultState.FAILED, TestResultState.ERRORED})


@dataclass
class TaskEndEvent:
    """A task process finished."""

    exit_code: int | None
    task_name: str
    task_group: TaskGroup | None = None


@dataclass
class TerminalDataEvent:
    """A chunk of terminal output arrived."""

    data: str


@dataclass
class OutputDeltaEvent:
    """Text was inserted into an output-panel document."""

    resource_uri: str
    inserted_text: str


@dataclass
class TestRunResult:
    """Latest test run, as reported by a test-results-changed event."""

    __test__ = False  # not a pytest class

    states: list[int] = field(default_factory=list)


# ============================================================================
# Failure Patterns
# ============================================================================

FAILURE_PATTERNS = [
    # Generic keywords, word-bounded so identifiers like failCount don't match
    r"(?i)\bFAIL(?:ED|URE|S)?\b",

    # Test summaries
    r"(?i)Tests?:\s+\d+\s+failed",  # Jest: Tests: 2 failed
    r"(?i)\d+\s+(?:failing|failed)",  # mocha: 3 failing / pytest: 2 failed
    r"(?i)FAILED \(failures=",  # unittest
    r"(?i)\d+ passed, \d+ failed",  # pytest summary
    r"(?i)ERRORS?!",  # JUnit: ERRORS!
    r"(?i)AssertionError",
    r"(?i)Test suite failed",
    r"(?i)npm ERR! Test failed",

    # Failure glyphs
    r"✗|✘|❌",

    # Build systems
    r"--- FAIL:",  # go test
    r"(?i)BUILD FAILED",  # gradle / ant
    r"(?i)FAILURES!",  # JUnit / PHPUnit

    # Runtime errors
    r"(?i)SyntaxError:",
    r"(?i)ReferenceError:",
    r"(?i)TypeError:",
    r"(?i)Traceback \(most recent call last\):",  # Python
    r"(?i)Exception in thread",  # Java
    r"(?i)panic:",  # Go / Rust
    r"(?i)Segmentation fault",  # C / C++
]
