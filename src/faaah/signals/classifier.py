"""Failure classifier for raw text fragments."""

import logging
import re
from typing import Optional, Sequence

from .types import FAILURE_PATTERNS, MatchResult

logger = logging.getLogger(__name__)


class FailureClassifier:
    """Decides whether a text fragment signals a failure.

    The classifier is stateless: every fragment is judged on its own, with
    no memory of previous fragments. A single match anywhere is enough.

    Usage:
        classifier = FailureClassifier()
        if classifier.classify(chunk):
            # Handle failure
    """

    # Regex to strip ANSI escape codes (includes private mode sequences like \x1b[?1049h)
    ANSI_ESCAPE = re.compile(
        r"\x1b\[\??[0-9;]*[a-zA-Z]"  # CSI sequences including private mode (\x1b[?...)
        r"|\x1b\].*?\x07"  # OSC sequences (window title, etc.)
        r"|\x1b\([A-Za-z]"  # Character set selection
    )

    def __init__(
        self,
        patterns: Sequence[str] = FAILURE_PATTERNS,
        snippet_context_chars: int = 25,
    ):
        """Initialize FailureClassifier.

        Args:
            patterns: Failure patterns; inline flags control case sensitivity.
            snippet_context_chars: Characters of context kept around a match.
        """
        self._patterns = [(p, re.compile(p)) for p in patterns]
        self._context = snippet_context_chars

        logger.debug("FailureClassifier initialized: %d patterns", len(self._patterns))

    def classify(self, text: Optional[str]) -> bool:
        """Return True if the fragment contains a failure indicator."""
        return self.match(text) is not None

    def match(self, text: Optional[str]) -> Optional[MatchResult]:
        """Return the first failure pattern found in the fragment.

        Args:
            text: Raw text, possibly containing ANSI escape codes.

        Returns:
            MatchResult for the first matching pattern, or None.
        """
        if not text or not isinstance(text, str):
            return None

        text = self.ANSI_ESCAPE.sub("", text)

        for pattern_str, regex in self._patterns:
            found = regex.search(text)
            if found:
                return MatchResult(
                    pattern=pattern_str,
                    snippet=self._extract_snippet(text, found),
                )

        return None

    @property
    def pattern_count(self) -> int:
        """Number of compiled failure patterns."""
        return len(self._patterns)

    def _extract_snippet(self, text: str, found: re.Match) -> str:
        """Extract single-line context around a match."""
        start = max(0, found.start() - self._context)
        end = min(len(text), found.end() + self._context)
        snippet = " ".join(text[start:end].split())

        if start > 0:
            snippet = "..." + snippet
        if end < len(text):
            snippet = snippet + "..."

        return snippet
