"""Pytest configuration and shared fixtures."""

from unittest.mock import MagicMock

import pytest

from faaah.config import Config


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Reset logging state before each test."""
    from faaah.logging import reset_logging

    reset_logging()
    yield
    reset_logging()


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 10_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """Manually advanced millisecond clock."""
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    """Config with a temporary media directory holding the default sound."""
    media = tmp_path / "media"
    media.mkdir()
    (media / "faaah.wav").write_bytes(b"RIFF")
    return Config(media_dir=str(media))


@pytest.fixture
def player():
    """Mock AudioPlayer that records play() calls."""
    mock = MagicMock()
    mock.play.return_value = MagicMock()
    mock.stop.return_value = False
    return mock
