"""Tests for FailureClassifier.

Covers:
- Reference corpus (positive and negative)
- Generic keywords and word boundaries
- Test summaries, glyphs, build markers, runtime errors
- ANSI code handling
- Statelessness and robustness
"""

import pytest

from faaah.signals.classifier import FailureClassifier
from faaah.signals.types import FAILURE_PATTERNS


@pytest.fixture
def classifier():
    """Classifier with the built-in patterns."""
    return FailureClassifier()


class TestReferenceCorpus:
    """Literal fragments with a known verdict."""

    @pytest.mark.parametrize(
        "text",
        [
            "3 passed, 2 failed",
            "--- FAIL: TestFoo",
            "Traceback (most recent call last):",
        ],
    )
    def test_failures_detected(self, classifier, text):
        assert classifier.classify(text) is True

    @pytest.mark.parametrize(
        "text",
        [
            "BUILD SUCCESSFUL",
            "variable named failCount = 0",
        ],
    )
    def test_non_failures_ignored(self, classifier, text):
        assert classifier.classify(text) is False


class TestGenericKeywords:
    """FAIL / FAILED / FAILURE / FAILS, word-bounded."""

    @pytest.mark.parametrize("word", ["FAIL", "FAILED", "FAILURE", "FAILS", "failed", "Failure"])
    def test_keyword_variants(self, classifier, word):
        assert classifier.classify(f"test_login {word}")

    @pytest.mark.parametrize(
        "text",
        ["const failCount = 0;", "onFailureHandler()", "unfailing", "All tests passed"],
    )
    def test_identifier_substrings_not_matched(self, classifier, text):
        assert not classifier.classify(text)


class TestSummaries:
    """Structured test-runner summaries."""

    @pytest.mark.parametrize(
        "text",
        [
            "Tests:       1 failed, 12 passed, 13 total",
            "  2 failing",
            "FAILED (failures=1)",
            "==== 10 passed, 1 failed in 0.52s ====",
            "Tests run: 4, Failures: 1\n\nFAILURES!!!",
            "npm ERR! Test failed.  See above for more details.",
            "AssertionError: expected 1 to equal 2",
        ],
    )
    def test_summary_detected(self, classifier, text):
        assert classifier.classify(text)


class TestGlyphsAndBuildMarkers:
    """Glyphs and build-system markers."""

    @pytest.mark.parametrize("glyph", ["✗", "✘", "❌"])
    def test_glyphs(self, classifier, glyph):
        assert classifier.classify(f"  {glyph} renders header")

    def test_check_mark_not_failure(self, classifier):
        assert not classifier.classify("  ✓ renders header")

    def test_build_failed(self, classifier):
        assert classifier.classify("BUILD FAILED in 3s")


class TestRuntimeErrors:
    """Language runtime error signatures."""

    @pytest.mark.parametrize(
        "text",
        [
            "ReferenceError: foo is not defined",
            "TypeError: Cannot read properties of undefined",
            "SyntaxError: invalid syntax",
            'Exception in thread "main" java.lang.NullPointerException',
            "panic: runtime error: index out of range",
            "Segmentation fault (core dumped)",
        ],
    )
    def test_runtime_error_detected(self, classifier, text):
        assert classifier.classify(text)


class TestAnsiHandling:
    """ANSI escape codes are stripped before matching."""

    def test_colored_failure(self, classifier):
        assert classifier.classify("\x1b[31mFAILED\x1b[0m tests/test_x.py::test_y")

    def test_color_codes_do_not_split_keyword_boundary(self, classifier):
        assert classifier.classify("\x1b[1m\x1b[31m2 failed\x1b[0m, 3 passed")


class TestMatchDetails:
    """match() returns the pattern and a snippet."""

    def test_match_has_pattern_and_snippet(self, classifier):
        result = classifier.match("collected 5 items ... 1 failed, 4 passed")

        assert result is not None
        assert result.pattern in FAILURE_PATTERNS
        assert "failed" in result.snippet

    def test_snippet_is_single_line(self, classifier):
        result = classifier.match("line one\nline two FAILED\nline three")

        assert "\n" not in result.snippet

    def test_no_match_returns_none(self, classifier):
        assert classifier.match("all good") is None


class TestRobustness:
    """Stateless, never raises."""

    @pytest.mark.parametrize("text", ["", None, 42])
    def test_empty_or_invalid_input(self, classifier, text):
        assert classifier.classify(text) is False

    def test_stateless_across_chunks(self, classifier):
        """A keyword split across chunks is not reassembled."""
        assert not classifier.classify("FA")
        assert not classifier.classify("IL")

    def test_same_input_same_verdict(self, classifier):
        assert classifier.classify("1 failed") == classifier.classify("1 failed")

    def test_custom_patterns(self):
        classifier = FailureClassifier(patterns=[r"BOOM"])

        assert classifier.pattern_count == 1
        assert classifier.classify("BOOM")
        assert not classifier.classify("FAILED")
