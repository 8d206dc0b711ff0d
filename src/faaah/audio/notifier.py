"""Turns dispatcher fires into sound playback."""

import logging
from pathlib import Path
from typing import Callable, Optional

from faaah.config import Config
from faaah.signals.types import EVENT_REGISTRY, TEST_FAIL

from .player import AudioPlayer

logger = logging.getLogger(__name__)


def resolve_sound_path(config: Config, event_key: str = TEST_FAIL) -> Path:
    """Resolve the sound resource configured for an event key.

    A per-event override in ``config.sounds`` wins over the registry
    default. Relative resources are looked up in the media directory.

    Raises:
        KeyError: If the event key is neither overridden nor registered.
    """
    resource = config.sounds.get(event_key)
    if not resource:
        resource = EVENT_REGISTRY[event_key].default_resource

    path = Path(resource).expanduser()
    if path.is_absolute():
        return path
    return config.media_path / path


class Notifier:
    """Plays the configured sound for an event key."""

    def __init__(
        self,
        player: AudioPlayer,
        config_provider: Callable[[], Config],
        on_played: Optional[Callable[[str, Path], None]] = None,
    ):
        """Initialize Notifier.

        Args:
            player: Player used for every notification.
            config_provider: Returns the current configuration snapshot.
            on_played: Called with (event key, sound path) after playback
                starts; hosts use it to flash a status indicator.
        """
        self._player = player
        self._config = config_provider
        self._on_played = on_played

    def notify(self, event_key: str) -> bool:
        """Start playback for an event key.

        Returns:
            True if playback started.
        """
        config = self._config()
        try:
            path = resolve_sound_path(config, event_key)
        except KeyError:
            logger.warning("No sound registered for event %s", event_key)
            return False

        logger.info("Playing %s for %s", path.name, event_key)
        if self._player.play(str(path), config.volume) is None:
            return False

        if self._on_played is not None:
            try:
                self._on_played(event_key, path)
            except Exception as e:
                logger.error("on_played listener failed: %s", e)
        return True

    def stop(self) -> bool:
        """Stop any playback in progress."""
        return self._player.stop()
