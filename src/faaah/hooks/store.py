"""Command-map store backed by the run tool's JSON settings file."""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Protocol

from faaah.errors import CommandStoreError

logger = logging.getLogger(__name__)

EXECUTOR_MAP_KEY = "code-runner.executorMap"
RUN_IN_TERMINAL_KEY = "code-runner.runInTerminal"

# Hides the run tool's "[Running] ..." banners around program output
SILENT_MODE_SETTINGS = {
    "code-runner.showExecutionMessage": False,
    "code-runner.clearPreviousOutput": True,
}


# ============================================================================
# Settings files are JSON with comments
# ============================================================================


def _string_end(text: str, start: int) -> int:
    """Index just past the JSON string literal opening at ``start``."""
    i = start + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == '"':
            return i + 1
        i += 1
    return len(text)


def strip_json_comments(text: str) -> str:
    """Remove // and /* */ comments outside string literals."""
    out = []
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch == '"':
            end = _string_end(text, i)
            out.append(text[i:end])
            i = end
        elif text.startswith("//", i):
            while i < length and text[i] not in "\r\n":
                i += 1
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    """Remove commas directly before } or ] outside string literals."""
    out = []
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch == '"':
            end = _string_end(text, i)
            out.append(text[i:end])
            i = end
            continue
        if ch == ",":
            j = i + 1
            while j < length and text[j] in " \t\r\n":
                j += 1
            if j < length and text[j] in "}]":
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def parse_jsonc(text: str) -> Any:
    """Parse JSON that may carry comments and trailing commas.

    Raises:
        json.JSONDecodeError: If the text is not valid even after cleanup.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        cleaned = strip_trailing_commas(strip_json_comments(text.lstrip("\ufeff")))
        if cleaned == text:
            raise
        return json.loads(cleaned)


class CommandMapStore(Protocol):
    """Protocol for the external store owning the command map."""

    def read(self) -> Optional[dict[str, Any]]:
        """Return the current command map, or None if absent/malformed."""
        ...

    def write(self, command_map: dict[str, Any]) -> None:
        """Replace the command map."""
        ...


def default_settings_path() -> Path:
    """Location of the editor's user settings.json on this platform."""
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "Code" / "User" / "settings.json"


class SettingsFileStore:
    """Reads and rewrites the command map inside a settings.json file.

    The file is shared with the editor, so every call re-reads it and
    writes preserve all other keys. Writes go through a temp file and
    ``os.replace`` so readers never see a half-written document.

    The editor allows comments and trailing commas in the file. Both are
    accepted on read; a write emits plain JSON, so comments are not kept.
    """

    def __init__(self, path: Optional[Path] = None, key: str = EXECUTOR_MAP_KEY):
        """Initialize store.

        Args:
            path: Settings file. Defaults to the editor's user settings.
            key: Settings key holding the command map.
        """
        self.path = Path(path) if path is not None else default_settings_path()
        self.key = key

    def _load_document(self) -> Optional[dict[str, Any]]:
        if not self.path.exists():
            logger.debug(f"No settings file at {self.path}")
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            logger.warning(f"Cannot read settings file {self.path}: {e}")
            return None
        if not content.strip():
            return {}
        try:
            data = parse_jsonc(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse settings file {self.path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.path} is not a JSON object")
            return None
        return data

    def read(self) -> Optional[dict[str, Any]]:
        """Return the command map, or None if the store has none.

        Returns:
            A copy of the map; None when the file is missing or malformed,
            or the key is absent or not an object.
        """
        data = self._load_document()
        if data is None:
            return None
        command_map = data.get(self.key)
        if command_map is None:
            logger.debug(f"No {self.key} in {self.path}")
            return None
        if not isinstance(command_map, dict):
            logger.warning(f"{self.key} in {self.path} is not an object")
            return None
        return dict(command_map)

    def run_in_terminal(self) -> Optional[bool]:
        """Run tool's own runInTerminal setting, if present."""
        data = self._load_document()
        if not data:
            return None
        value = data.get(RUN_IN_TERMINAL_KEY)
        return value if isinstance(value, bool) else None

    def write(self, command_map: dict[str, Any]) -> None:
        """Store the command map, keeping every other setting.

        Raises:
            CommandStoreError: If the settings file is unreadable or
                cannot be written.
        """
        self.update({self.key: command_map})

    def update(self, values: dict[str, Any]) -> None:
        """Set top-level settings, keeping every other setting.

        Raises:
            CommandStoreError: If the settings file is unreadable or
                cannot be written.
        """
        data = self._load_document()
        if data is None:
            if self.path.exists():
                raise CommandStoreError(f"Refusing to overwrite malformed {self.path}")
            data = {}

        data.update(values)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=4, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise CommandStoreError(f"Cannot write {self.path}: {e}") from e

        logger.debug(f"Saved {', '.join(values)} to {self.path}")
