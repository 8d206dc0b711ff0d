"""Sound playback for failure notifications."""

from .player import AudioPlayer, player_commands
from .notifier import Notifier, resolve_sound_path

__all__ = [
    "AudioPlayer",
    "Notifier",
    "player_commands",
    "resolve_sound_path",
]
