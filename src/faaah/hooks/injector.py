"""Failure-hook injection into a run tool's per-language command templates.

The run tool substitutes placeholders like ``$fullFileName`` into a
command template and executes it. Appending a hook that runs only when
the command failed lets external program failures reach the same
notification path as detected terminal output.

Injection is recomputed from a clean base every time: existing hooks are
stripped, legacy hooks reset the template to its default, then exactly one
hook for the current sound path and shell dialect is appended. Running it
again on its own output changes nothing.
"""

import logging
import re
import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from faaah.platform import Platform

logger = logging.getLogger(__name__)

FULL_PATH_PLACEHOLDER = "$fullFileName"

PLACEHOLDER_PATTERN = re.compile(
    r"\$(?:fullFileName|fileNameWithoutExt|fileName"
    r"|dirWithoutTrailingSlash|dir|workspaceRoot|driveLetter|pythonPath)"
)

# Left behind by earlier hook generations that invoked players directly
# or went through helper scripts that no longer ship.
LEGACY_HOOK_PATTERN = re.compile(
    r"play-sound\.js|run-and-faaah\.js"
    r"|\b(?:aplay|afplay|paplay)\b"
    r"|SoundPlayer"
    r"|\bcmd /c\b"
)

_SHELL_WRAPPER = re.compile(r"\Ash -c ('.*')\Z", re.DOTALL)


@dataclass(frozen=True)
class LanguageTarget:
    """A language whose command template receives a failure hook."""

    language: str
    default: str  # Run tool's built-in template


DEFAULT_TARGETS: tuple[LanguageTarget, ...] = (
    LanguageTarget("javascript", "node"),
    LanguageTarget("python", "python -u"),
    LanguageTarget(
        "cpp",
        "cd $dir && g++ $fileName -o $fileNameWithoutExt && $dir$fileNameWithoutExt",
    ),
    LanguageTarget(
        "c",
        "cd $dir && gcc $fileName -o $fileNameWithoutExt && $dir$fileNameWithoutExt",
    ),
    LanguageTarget("java", "cd $dir && javac $fileName && java $fileNameWithoutExt"),
)


class Dialect(Enum):
    """Shell semantics a command template is evaluated with."""

    WINDOWS = "windows"  # PowerShell in the integrated terminal
    POSIX_TERMINAL = "posix-terminal"  # Typed into an interactive shell
    POSIX_SPAWN = "posix-spawn"  # Spawned directly, no shell


def select_dialect(platform: Platform, run_in_terminal: bool) -> Dialect:
    """Pick the dialect the run tool will execute commands with."""
    if platform == Platform.WINDOWS:
        return Dialect.WINDOWS
    if run_in_terminal:
        return Dialect.POSIX_TERMINAL
    return Dialect.POSIX_SPAWN


@dataclass(frozen=True)
class HookPayload:
    """Everything a hook needs; rebuilt from configuration on every run."""

    sound_path: str
    platform: Platform
    run_in_terminal: bool = False
    notifier: str = "faaah play"  # Audio-notification entry point

    @property
    def dialect(self) -> Dialect:
        return select_dialect(self.platform, self.run_in_terminal)


@dataclass
class InjectionResult:
    """Outcome of an injection pass."""

    command_map: Optional[Any]
    changed: bool
    changed_languages: tuple[str, ...] = field(default_factory=tuple)


# ============================================================================
# Quoting
# ============================================================================


def posix_quote(text: str) -> str:
    """Quote text as one single-quoted POSIX shell word.

    Embedded single quotes close the quote, add an escaped quote and
    reopen it: ``it's`` becomes ``'it'\\''s'``.
    """
    return "'" + text.replace("'", "'\\''") + "'"


def posix_unquote(word: str) -> str:
    """Return the text of one POSIX shell word, however it was quoted.

    Raises:
        ValueError: If the word is unbalanced or splits into several words.
    """
    parts = shlex.split(word)
    if len(parts) != 1:
        raise ValueError(f"Not a single shell word: {word[:40]!r}")
    return parts[0]


def posix_double_quote(text: str) -> str:
    """Quote text for a POSIX double-quoted context."""
    return '"' + re.sub(r'([\\"$`])', r"\\\1", text) + '"'


def powershell_double_quote(text: str) -> str:
    """Quote text for a PowerShell double-quoted string."""
    return '"' + re.sub(r'([`"$])', r"`\1", text) + '"'


# ============================================================================
# Hook construction and removal
# ============================================================================


def build_hook(payload: HookPayload) -> str:
    """Build the suffix that runs the notifier when the command failed."""
    if payload.dialect == Dialect.WINDOWS:
        # $? is PowerShell's automatic success variable
        quoted = powershell_double_quote(payload.sound_path)
        return f" ; if (-not $?) {{ {payload.notifier} {quoted} }}"
    return f" || {payload.notifier} {posix_double_quote(payload.sound_path)}"


def apply_hook(command: str, payload: HookPayload) -> str:
    """Append the failure hook to a clean command."""
    hooked = f"{command}{build_hook(payload)}"
    if payload.dialect == Dialect.POSIX_SPAWN:
        # A spawned command is not shell-evaluated, so `||` needs a shell
        return f"sh -c {posix_quote(hooked)}"
    return hooked


# One shell word: double-quoted, single-quoted, escaped or bare pieces
_POSIX_WORD = r"""(?:"(?:[^"\\]|\\.)*"|'[^']*'|\\.|[^\s'"\\;&|])+"""
_POWERSHELL_WORD = r"""(?:"(?:[^"`]|`.)*"|'(?:[^']|'')*'|[^\s'"}])+"""


def _hook_suffix_patterns(notifier: str) -> tuple[re.Pattern, re.Pattern]:
    name = re.escape(notifier)
    posix = re.compile(r"\s*\|\|\s*" + name + r"\s+" + _POSIX_WORD + r"\s*\Z", re.DOTALL)
    windows = re.compile(
        r"\s*;\s*if\s*\(\s*-not\s+\$\?\s*\)\s*\{\s*"
        + name
        + r"\s+"
        + _POWERSHELL_WORD
        + r"\s*\}\s*\Z",
        re.DOTALL,
    )
    return posix, windows


def _unwrap_shell(command: str) -> Optional[str]:
    """Return the inner command of a single-quoted ``sh -c '...'`` wrapper."""
    wrapped = _SHELL_WRAPPER.match(command)
    if not wrapped:
        return None
    word = wrapped.group(1)
    try:
        return posix_unquote(word)
    except ValueError:
        return None


def strip_hooks(command: str, notifier: str) -> str:
    """Remove every trailing failure hook invoking ``notifier``.

    A ``sh -c`` wrapper is only unwrapped when its inner command carries
    one of these hooks; user-written wrappers are left alone.
    """
    posix, windows = _hook_suffix_patterns(notifier)
    while True:
        inner = _unwrap_shell(command)
        if inner is not None and posix.search(inner):
            command = inner
            continue
        stripped = windows.sub("", posix.sub("", command, count=1), count=1)
        if stripped == command:
            return command
        command = stripped


def ensure_placeholder(command: str) -> str:
    """Pass the target file explicitly when no placeholder is present.

    Without one the run tool appends a bare file name to the end of the
    command, which after hooking is the notifier's argument list.
    """
    if PLACEHOLDER_PATTERN.search(command):
        return command
    return f"{command} {FULL_PATH_PLACEHOLDER}"


def clean_command(template: Any, default: str, notifier: str) -> str:
    """Recover the unhooked base command of a template.

    Missing, non-string or empty templates and templates carrying a legacy
    hook fall back to the run tool's default.
    """
    if not isinstance(template, str) or not template.strip():
        return default
    base = strip_hooks(template, notifier).rstrip()
    if LEGACY_HOOK_PATTERN.search(base):
        logger.info("Resetting template with legacy hook: %s", template[:60])
        return default
    return base or default


def hook_command(template: Any, default: str, payload: HookPayload) -> str:
    """Compute the hooked form of one template."""
    base = ensure_placeholder(clean_command(template, default, payload.notifier))
    return apply_hook(base, payload)


# ============================================================================
# Command map passes
# ============================================================================


def inject(
    command_map: Any,
    payload: HookPayload,
    targets: Sequence[LanguageTarget] = DEFAULT_TARGETS,
) -> InjectionResult:
    """Hook every target language of a command map.

    The input map is not modified. Languages not in ``targets`` are copied
    unchanged.

    Args:
        command_map: Language id -> command template, as read from the store.
        payload: Sound path, platform and notifier for the hook.
        targets: Languages to hook and their default templates.

    Returns:
        InjectionResult with the new map; ``changed`` is False when the map
        was already hooked for this payload or is not a mapping.
    """
    if not isinstance(command_map, Mapping):
        logger.warning(
            "Command map is %s, not a mapping; skipping injection",
            type(command_map).__name__,
        )
        return InjectionResult(command_map=command_map, changed=False)

    new_map = dict(command_map)
    changed = []
    for target in targets:
        current = command_map.get(target.language)
        hooked = hook_command(current, target.default, payload)
        if hooked != current:
            new_map[target.language] = hooked
            changed.append(target.language)

    if changed:
        logger.debug("Hooks injected for: %s", ", ".join(changed))

    return InjectionResult(
        command_map=new_map,
        changed=bool(changed),
        changed_languages=tuple(changed),
    )


def remove_hooks(
    command_map: Any,
    notifier: str = HookPayload.notifier,
    targets: Sequence[LanguageTarget] = DEFAULT_TARGETS,
) -> InjectionResult:
    """Strip failure hooks from every target language of a command map.

    Entries that are missing stay missing. Placeholders added during
    injection are kept.
    """
    if not isinstance(command_map, Mapping):
        logger.warning(
            "Command map is %s, not a mapping; nothing to remove",
            type(command_map).__name__,
        )
        return InjectionResult(command_map=command_map, changed=False)

    new_map = dict(command_map)
    changed = []
    for target in targets:
        current = command_map.get(target.language)
        if current is None:
            continue
        clean = clean_command(current, target.default, notifier)
        if clean != current:
            new_map[target.language] = clean
            changed.append(target.language)

    return InjectionResult(
        command_map=new_map,
        changed=bool(changed),
        changed_languages=tuple(changed),
    )
