"""Audio playback through the platform's command-line player."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

SpawnFn = Callable[..., Awaitable[Any]]


def player_commands(path: str, volume: float, platform: str) -> list[list[str]]:
    """Command lines to try, in order, to play a sound file.

    Args:
        path: Sound file to play.
        volume: Playback volume in [0, 1] (honoured by afplay only).
        platform: A ``sys.platform`` value.

    Returns:
        Primary command followed by any fallbacks.
    """
    if platform == "darwin":
        return [["afplay", path, "-v", str(volume)]]
    if platform.startswith("win"):
        escaped = path.replace("'", "''")
        script = (
            "Add-Type -AssemblyName System.Media; "
            f"$p = New-Object System.Media.SoundPlayer '{escaped}'; "
            "$p.PlaySync()"
        )
        return [["powershell", "-NoProfile", "-Command", script]]
    return [["aplay", "-q", path], ["paplay", path]]


class AudioPlayer:
    """Plays one sound at a time.

    Starting a new sound kills the one still playing. Playback runs as a
    task on the current event loop; callers never wait for it.
    """

    def __init__(
        self,
        platform: Optional[str] = None,
        spawn: Optional[SpawnFn] = None,
    ):
        """Initialize AudioPlayer.

        Args:
            platform: ``sys.platform`` value to pick the player for.
            spawn: Process factory (defaults to asyncio.create_subprocess_exec).
        """
        self._platform = platform or sys.platform
        self._spawn = spawn or asyncio.create_subprocess_exec
        self._task: Optional[asyncio.Task] = None
        self._proc: Optional[Any] = None

    @property
    def is_playing(self) -> bool:
        """True while a playback task is running."""
        return self._task is not None and not self._task.done()

    def play(self, path: str, volume: float = 1.0) -> Optional[asyncio.Task]:
        """Start playing a sound file, replacing any current playback.

        Args:
            path: Sound file to play.
            volume: Playback volume in [0, 1].

        Returns:
            The playback task, or None if playback could not start.
        """
        self.stop()

        if not Path(path).is_file():
            logger.warning("Sound file not found: %s", path)
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, cannot play %s", path)
            return None

        commands = player_commands(path, volume, self._platform)
        self._task = loop.create_task(self._run(commands))
        return self._task

    async def play_and_wait(self, path: str, volume: float = 1.0) -> bool:
        """Play a sound file and wait for it to finish.

        Returns:
            True if a player exited successfully.
        """
        task = self.play(path, volume)
        if task is None:
            return False
        try:
            return await task
        except asyncio.CancelledError:
            return False

    async def wait(self) -> None:
        """Wait for the current playback, if any, to finish."""
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def stop(self) -> bool:
        """Stop the current playback.

        Returns:
            True if something was playing.
        """
        task, self._task = self._task, None
        proc, self._proc = self._proc, None
        was_playing = task is not None and not task.done()

        if proc is not None and proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        if was_playing:
            task.cancel()

        return was_playing

    async def _run(self, commands: list[list[str]]) -> bool:
        """Try each player command until one succeeds."""
        for argv in commands:
            try:
                proc = await self._spawn(
                    *argv,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                logger.debug("Cannot start %s: %s", argv[0], e)
                continue

            self._proc = proc
            try:
                returncode = await proc.wait()
            finally:
                if self._proc is proc:
                    self._proc = None

            if returncode == 0:
                return True
            logger.debug("%s exited with %s", argv[0], returncode)

        logger.warning("Playback failed: no working player among %s",
                       ", ".join(argv[0] for argv in commands))
        return False
