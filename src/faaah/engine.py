"""Failure signal engine - ties all components together."""

import asyncio
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Optional

from faaah.audio.notifier import Notifier, resolve_sound_path
from faaah.audio.player import AudioPlayer
from faaah.config import Config, save_config
from faaah.errors import CommandStoreError
from faaah.hooks.injector import HookPayload, InjectionResult, inject
from faaah.hooks.store import CommandMapStore
from faaah.platform import Platform
from faaah.runner import ScriptRunner
from faaah.signals.adapters import (
    OutputPanelAdapter,
    SignalAdapter,
    TaskCompletionAdapter,
    TerminalStreamAdapter,
    TestResultsAdapter,
)
from faaah.signals.classifier import FailureClassifier
from faaah.signals.dispatcher import DebouncedDispatcher
from faaah.signals.feeds import HostFeeds
from faaah.signals.types import TEST_FAIL

logger = logging.getLogger(__name__)


def build_hook_payload(config: Config, platform: Platform) -> HookPayload:
    """Build the hook payload for a configuration snapshot."""
    return HookPayload(
        sound_path=str(resolve_sound_path(config, TEST_FAIL)),
        platform=platform,
        run_in_terminal=config.run_in_terminal,
        notifier=config.notifier,
    )


class FailureSignalEngine:
    """Main engine orchestrating detection, debouncing and notification.

    Responsibilities:
    - Own the configuration snapshot (replaced on every reload)
    - Attach adapters to host feeds and detach them on stop
    - Debounce failure verdicts per event key
    - Play the configured sound on every dispatcher fire
    - Keep the run tool's command templates hooked

    Store and config file IO started while an event loop is running runs in
    a worker thread; ``flush()`` waits for it.
    """

    def __init__(
        self,
        config: Config,
        store: Optional[CommandMapStore] = None,
        player: Optional[AudioPlayer] = None,
        platform: Optional[Platform] = None,
        clock: Optional[Callable[[], float]] = None,
        config_path: Optional[Path] = None,
        on_played: Optional[Callable[[str, Path], None]] = None,
    ):
        """Initialize engine.

        Args:
            config: Initial configuration.
            store: Command-map store to keep hooked (None disables injection).
            player: Audio player (for testing).
            platform: Platform the run tool executes on (detected if None).
            clock: Millisecond clock for the dispatcher (for testing).
            config_path: Where toggle() persists the configuration.
            on_played: Listener called after playback starts.
        """
        self._config = config
        self._store = store
        self._platform = platform or Platform.current()
        self._config_path = config_path
        self._running = False
        self._io_lock = threading.Lock()
        self._pending_io: set[asyncio.Task] = set()

        self._classifier = FailureClassifier()
        self._notifier = Notifier(player or AudioPlayer(), self.get_config, on_played)
        self._dispatcher = DebouncedDispatcher(
            self._notifier.notify,
            cooldown_ms=config.cooldown_ms,
            clock=clock,
        )
        self._runner = ScriptRunner(self._on_script_failed)

        self._task_adapter = TaskCompletionAdapter(self.trigger, self.get_config)
        self._terminal_adapter = TerminalStreamAdapter(
            self.trigger, self.get_config, self._classifier
        )
        self._output_adapter = OutputPanelAdapter(
            self.trigger, self.get_config, self._classifier
        )
        self._test_results_adapter = TestResultsAdapter(self.trigger, self.get_config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def adapters(self) -> list[SignalAdapter]:
        return [
            self._task_adapter,
            self._terminal_adapter,
            self._output_adapter,
            self._test_results_adapter,
        ]

    def start(self, feeds: Optional[HostFeeds] = None) -> None:
        """Attach adapters to the host's feeds and hook command templates.

        Feeds the host does not offer are skipped.
        """
        if self._running:
            return
        feeds = feeds or HostFeeds()

        for adapter, feed in (
            (self._task_adapter, feeds.tasks),
            (self._terminal_adapter, feeds.terminal),
            (self._output_adapter, feeds.output),
            (self._test_results_adapter, feeds.test_results),
        ):
            if feed is None:
                logger.debug("Host has no %s feed, skipping", adapter.name)
                continue
            adapter.attach(feed)

        self._running = True
        logger.info("Engine started (enabled=%s)", self._config.enabled)
        self._run_io(self.inject_hooks)

    async def stop(self) -> None:
        """Detach every adapter, finish pending IO and stop playback and scripts."""
        for adapter in self.adapters:
            adapter.detach()
        await self.flush()
        self._notifier.stop()
        await self._runner.cancel_all()
        self._running = False
        logger.info("Engine stopped")

    def get_config(self) -> Config:
        """Current configuration snapshot."""
        return self._config

    def reload(self, config: Config) -> None:
        """Apply a new configuration snapshot and re-hook templates."""
        self._config = config
        self._dispatcher.cooldown_ms = config.cooldown_ms
        logger.debug("Configuration reloaded")
        if self._running:
            self._run_io(self.inject_hooks)

    async def flush(self) -> None:
        """Wait for store and config writes started from the event loop."""
        while self._pending_io:
            pending = list(self._pending_io)
            await asyncio.gather(*pending, return_exceptions=True)
            self._pending_io.difference_update(pending)

    def _run_io(self, func: Callable[..., Any], *args: Any) -> None:
        """Call blocking file IO, in a worker thread when a loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            func(*args)
            return
        # Run blocking I/O in thread pool
        task = loop.create_task(asyncio.to_thread(func, *args))
        self._pending_io.add(task)
        task.add_done_callback(self._io_done)

    def _io_done(self, task: asyncio.Task) -> None:
        self._pending_io.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Background settings IO failed: %s", error)

    # ------------------------------------------------------------------
    # Notification path
    # ------------------------------------------------------------------

    def trigger(self, event_key: str = TEST_FAIL, force: bool = False) -> bool:
        """Pass a failure verdict to the dispatcher.

        Returns:
            True if a notification fired.
        """
        if not force and not self._config.enabled:
            return False
        return self._dispatcher.trigger(event_key, force=force)

    def play_now(self, event_key: str = TEST_FAIL) -> bool:
        """Manual trigger; bypasses both the cooldown and ``enabled``."""
        return self.trigger(event_key, force=True)

    def toggle(self) -> bool:
        """Flip ``enabled``, persist it and return the new value."""
        config = replace(self._config, enabled=not self._config.enabled)
        if self._config_path is not None:
            self._run_io(save_config, config, self._config_path)
        self.reload(config)
        logger.info("faaah is now %s", "on" if config.enabled else "off")
        return config.enabled

    def run_script(self, path: Path):
        """Run a script in the background; notify if it exits non-zero."""
        return self._runner.run(path)

    def _on_script_failed(self, path: Path, returncode: int) -> None:
        self.trigger(TEST_FAIL)

    # ------------------------------------------------------------------
    # Command hooks
    # ------------------------------------------------------------------

    def hook_payload(self) -> HookPayload:
        """Build the hook payload from the current configuration."""
        return build_hook_payload(self._config, self._platform)

    def inject_hooks(self) -> Optional[InjectionResult]:
        """Hook the store's command templates for the current configuration.

        Returns:
            The injection result, or None when injection was skipped.
        """
        if self._store is None or not self._config.enabled:
            return None
        with self._io_lock:
            return self._inject(self._store)

    def _inject(self, store: CommandMapStore) -> Optional[InjectionResult]:
        command_map = store.read()
        if command_map is None:
            logger.info("No command map in store, skipping hook injection")
            return None

        result = inject(command_map, self.hook_payload())
        if not result.changed:
            return result

        try:
            store.write(result.command_map)
        except CommandStoreError as e:
            logger.warning("Could not save hooked commands: %s", e)
            return None

        logger.info("Hooked commands for: %s", ", ".join(result.changed_languages))
        return result
