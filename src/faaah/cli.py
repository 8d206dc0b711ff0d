"""CLI entry point for faaah."""

import asyncio
import sys
from dataclasses import replace
from pathlib import Path

import click

from faaah import __version__
from faaah.audio.notifier import resolve_sound_path
from faaah.audio.player import AudioPlayer
from faaah.config import Config, get_config_path, load_config, save_config
from faaah.errors import CommandStoreError, ConfigError
from faaah.hooks import injector
from faaah.hooks.store import SILENT_MODE_SETTINGS, SettingsFileStore
from faaah.logging import setup_logging


def _settings_store(config: Config, settings: Path | None) -> SettingsFileStore:
    """Settings store from --settings, else the configured file."""
    if settings is None and config.settings_file:
        settings = Path(config.settings_file).expanduser()
    return SettingsFileStore(settings)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file.",
)
@click.option("--verbose", "-v", count=True, help="Show info (-v) or debug (-vv) logs on stderr.")
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: int) -> None:
    """faaah - play a sound when your tests, builds or scripts fail."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = get_config_path(config)
    ctx.obj["config"] = load_config(config)
    ctx.obj["logger"] = setup_logging(ctx.obj["config"], verbose)


@main.command()
@click.argument("sound", type=click.Path(path_type=Path))
@click.option("--volume", type=click.FloatRange(0.0, 1.0), default=None,
              help="Playback volume (defaults to the configured volume).")
@click.pass_context
def play(ctx: click.Context, sound: Path, volume: float | None) -> None:
    """Play SOUND and wait for it to finish.

    This is the command injected failure hooks invoke. It always exits 0
    so the hooked command keeps the run tool's output clean.
    """
    config = ctx.obj["config"]
    if volume is None:
        volume = config.volume
    asyncio.run(AudioPlayer().play_and_wait(str(sound), volume))


@main.command("test-sound")
@click.pass_context
def test_sound(ctx: click.Context) -> None:
    """Play the configured failure sound."""
    config = ctx.obj["config"]
    path = resolve_sound_path(config)
    click.echo(f"Playing {path}")
    ok = asyncio.run(AudioPlayer().play_and_wait(str(path), config.volume))
    if not ok:
        click.echo("Playback failed, see log for details", err=True)
        raise SystemExit(1)


@main.command()
@click.option(
    "--settings",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Run tool settings.json (defaults to the editor's user settings).",
)
@click.option("--dry-run", is_flag=True, help="Print the hooked commands only.")
@click.option("--remove", is_flag=True, help="Strip hooks instead of adding them.")
@click.pass_context
def inject(ctx: click.Context, settings: Path | None, dry_run: bool, remove: bool) -> None:
    """Hook the run tool's command templates."""
    from faaah.engine import build_hook_payload
    from faaah.platform import Platform

    config = ctx.obj["config"]
    store = _settings_store(config, settings)

    command_map = store.read()
    if command_map is None:
        click.echo(f"No command map found in {store.path}", err=True)
        raise SystemExit(1)

    if remove:
        result = injector.remove_hooks(command_map, config.notifier)
    else:
        run_in_terminal = store.run_in_terminal()
        if run_in_terminal is not None:
            config = replace(config, run_in_terminal=run_in_terminal)
        result = injector.inject(command_map, build_hook_payload(config, Platform.current()))

    if not result.changed:
        click.echo("Command templates already up to date")
        return

    for language in result.changed_languages:
        click.echo(f"{language}: {result.command_map[language]}")

    if dry_run:
        return

    try:
        store.write(result.command_map)
    except CommandStoreError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Updated {store.path}")


@main.command("silent-mode")
@click.option(
    "--settings",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Run tool settings.json (defaults to the editor's user settings).",
)
@click.pass_context
def silent_mode(ctx: click.Context, settings: Path | None) -> None:
    """Hide the run tool's execution banners so only program output shows."""
    store = _settings_store(ctx.obj["config"], settings)
    try:
        store.update(SILENT_MODE_SETTINGS)
    except CommandStoreError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Silent mode enabled in {store.path}")


@main.command()
@click.pass_context
def watch(ctx: click.Context) -> None:
    """Copy stdin to stdout and play a sound when output shows a failure.

    Example: pytest 2>&1 | faaah watch
    """
    from faaah.engine import FailureSignalEngine
    from faaah.signals.feeds import HostFeeds
    from faaah.signals.types import TerminalDataEvent

    config = ctx.obj["config"]

    async def _watch() -> None:
        player = AudioPlayer()
        feeds = HostFeeds.create()
        engine = FailureSignalEngine(config, player=player)
        engine.start(feeds)

        loop = asyncio.get_running_loop()
        stdin = sys.stdin.buffer
        try:
            while True:
                line = await loop.run_in_executor(None, stdin.readline)
                if not line:
                    break
                text = line.decode("utf-8", errors="replace")
                click.echo(text, nl=False)
                feeds.terminal.emit(TerminalDataEvent(data=text))
            await player.wait()
        finally:
            await engine.stop()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        pass


@main.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def run(ctx: click.Context, script: Path) -> None:
    """Run SCRIPT and play a sound if it exits non-zero."""
    from faaah.engine import FailureSignalEngine

    config = ctx.obj["config"]

    async def _run() -> int | None:
        player = AudioPlayer()
        engine = FailureSignalEngine(config, player=player)
        task = engine.run_script(script.resolve())
        if task is None:
            return None
        returncode = await task
        await player.wait()
        return returncode

    returncode = asyncio.run(_run())
    if returncode is None:
        click.echo(f"Cannot run {script}", err=True)
        raise SystemExit(2)
    raise SystemExit(returncode)


@main.command()
@click.pass_context
def toggle(ctx: click.Context) -> None:
    """Turn failure notifications on or off."""
    config = ctx.obj["config"]
    config = replace(config, enabled=not config.enabled)
    try:
        path = save_config(config, ctx.obj["config_path"])
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    state = "ON" if config.enabled else "OFF"
    click.echo(f"faaah is now {state} ({path})")


@main.command()
def version() -> None:
    """Show version."""
    click.echo(f"faaah version {__version__}")
