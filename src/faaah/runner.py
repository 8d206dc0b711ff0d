"""Run a script in the background and report non-zero exits."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

INTERPRETERS: dict[str, list[str]] = {
    ".js": ["node"],
    ".mjs": ["node"],
    ".cjs": ["node"],
    ".py": [sys.executable],
    ".rb": ["ruby"],
    ".sh": ["sh"],
    ".go": ["go", "run"],
}


def script_command(path: Path) -> Optional[list[str]]:
    """Command line running a script, chosen by file extension."""
    interpreter = INTERPRETERS.get(path.suffix.lower())
    if interpreter is None:
        return None
    return [*interpreter, str(path)]


class ScriptRunner:
    """Runs scripts as background processes and reports failures.

    The script's output is discarded; only its exit status matters.
    """

    def __init__(
        self,
        on_failure: Callable[[Path, int], None],
        spawn: Optional[Callable[..., Awaitable[Any]]] = None,
    ):
        """Initialize ScriptRunner.

        Args:
            on_failure: Called with (script, exit code) on non-zero exit.
            spawn: Process factory (defaults to asyncio.create_subprocess_exec).
        """
        self._on_failure = on_failure
        self._spawn = spawn or asyncio.create_subprocess_exec
        self._tasks: set[asyncio.Task] = set()

    def run(self, path: Path) -> Optional[asyncio.Task]:
        """Start running a script without waiting for it.

        Returns:
            The task watching the script, or None if it cannot be run.
        """
        path = Path(path)
        argv = script_command(path)
        if argv is None:
            logger.warning("Don't know how to run %s", path.name)
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, cannot run %s", path.name)
            return None

        task = loop.create_task(self._watch(path, argv))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _watch(self, path: Path, argv: list[str]) -> Optional[int]:
        try:
            proc = await self._spawn(
                *argv,
                cwd=str(path.parent),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning("Cannot start %s: %s", argv[0], e)
            return None

        try:
            returncode = await proc.wait()
        except asyncio.CancelledError:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
            raise

        if returncode != 0:
            logger.info("%s exited with %d", path.name, returncode)
            self._on_failure(path, returncode)
        return returncode

    async def cancel_all(self) -> None:
        """Cancel every script still being watched."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def active_count(self) -> int:
        return len(self._tasks)
