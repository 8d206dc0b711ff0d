"""Configuration management for faaah."""

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from faaah.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_DIR = Path(__file__).parent / "media"

# Keys as spelled by the editor extension settings
_ALIASES = {
    "cooldownMs": "cooldown_ms",
    "detectFromTerminal": "detect_from_terminal",
    "runInTerminal": "run_in_terminal",
    "mediaDir": "media_dir",
    "settingsFile": "settings_file",
    "debugChannel": "debug_channel",
    "logLevel": "log_level",
    "logFile": "log_file",
}


@dataclass
class Config:
    """Engine configuration snapshot.

    A new instance is built for every change notification; engine
    components never mutate it.
    """

    enabled: bool = True
    cooldown_ms: int = 3000
    volume: float = 1.0
    detect_from_terminal: bool = True
    sounds: dict[str, str] = field(default_factory=dict)  # EventKey -> resource
    run_in_terminal: bool = False
    media_dir: str | None = None  # None = packaged media directory
    settings_file: str | None = None  # None = run tool's user settings.json
    notifier: str = "faaah play"  # Command the injected hook invokes
    debug_channel: str = "FAAAH Debug"  # Own output panel, never classified
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def media_path(self) -> Path:
        """Directory relative sound resources are resolved against."""
        if self.media_dir:
            return Path(self.media_dir).expanduser()
        return DEFAULT_MEDIA_DIR


def get_config_path(custom_path: Path | None = None) -> Path:
    """Get the configuration file path.

    Args:
        custom_path: Override path. If None, returns default.

    Returns:
        Path to config file.
    """
    if custom_path is not None:
        return custom_path
    return Path.home() / ".config" / "faaah" / "config.yaml"


def _default_file_reader(path: Path) -> dict[str, Any] | None:
    """Default file reader that loads YAML from disk."""
    if not path.exists():
        return None
    try:
        content = path.read_text()
        if not content.strip():
            return None
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.warning("Ignoring unparseable config %s: %s", path, e)
        return None


def _as_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning("Config %s must be a boolean, got %r", key, value)
    return default


def _as_optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    logger.warning("Config %s must be a string, got %r", key, value)
    return None


def _cooldown(data: dict[str, Any]) -> int:
    value = data.get("cooldown_ms", Config.cooldown_ms)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning("Config cooldown_ms must be a number, got %r", value)
        return Config.cooldown_ms
    return max(0, int(value))


def _volume(data: dict[str, Any]) -> float:
    value = data.get("volume", Config.volume)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning("Config volume must be a number, got %r", value)
        return Config.volume
    return min(1.0, max(0.0, float(value)))


def _sounds(data: dict[str, Any]) -> dict[str, str]:
    value = data.get("sounds") or {}
    if not isinstance(value, dict):
        logger.warning("Config sounds must be a mapping, got %r", value)
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str) and v}


def config_from_dict(data: dict[str, Any]) -> Config:
    """Build a validated Config from a raw mapping.

    Unknown keys are ignored. Out-of-range values are clamped and
    wrongly-typed values fall back to their defaults.
    """
    data = {_ALIASES.get(k, k): v for k, v in data.items()}

    return Config(
        enabled=_as_bool(data, "enabled", Config.enabled),
        cooldown_ms=_cooldown(data),
        volume=_volume(data),
        detect_from_terminal=_as_bool(
            data, "detect_from_terminal", Config.detect_from_terminal
        ),
        sounds=_sounds(data),
        run_in_terminal=_as_bool(data, "run_in_terminal", Config.run_in_terminal),
        media_dir=_as_optional_str(data, "media_dir"),
        settings_file=_as_optional_str(data, "settings_file"),
        notifier=_as_optional_str(data, "notifier") or Config.notifier,
        debug_channel=_as_optional_str(data, "debug_channel") or Config.debug_channel,
        log_level=_as_optional_str(data, "log_level") or Config.log_level,
        log_file=_as_optional_str(data, "log_file"),
    )


def load_config(
    path: Path | None = None,
    file_reader: Callable[[Path], dict[str, Any] | None] | None = None,
) -> Config:
    """Load configuration from file.

    Args:
        path: Path to config file. If None, uses default path.
        file_reader: Injectable file reader for testing.

    Returns:
        Config object with values from file or defaults.
    """
    config_path = get_config_path(path)
    reader = file_reader or _default_file_reader

    data = reader(config_path)

    if data is None:
        return Config()
    if not isinstance(data, dict):
        logger.warning("Config %s is not a mapping, using defaults", config_path)
        return Config()

    return config_from_dict(data)


def save_config(config: Config, path: Path | None = None) -> Path:
    """Write configuration to file.

    Args:
        config: Configuration to persist.
        path: Path to config file. If None, uses default path.

    Returns:
        Path the configuration was written to.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = get_config_path(path)
    tmp_path = config_path.with_suffix(config_path.suffix + ".tmp")
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(yaml.safe_dump(asdict(config), sort_keys=False))
        os.replace(tmp_path, config_path)
    except OSError as e:
        raise ConfigError(f"Cannot write config {config_path}: {e}") from e
    return config_path
