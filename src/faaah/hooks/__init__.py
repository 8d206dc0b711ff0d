"""Failure hooks for a run tool's command templates."""

from .injector import (
    DEFAULT_TARGETS,
    FULL_PATH_PLACEHOLDER,
    Dialect,
    HookPayload,
    InjectionResult,
    LanguageTarget,
    apply_hook,
    build_hook,
    inject,
    posix_quote,
    posix_unquote,
    remove_hooks,
    select_dialect,
    strip_hooks,
)
from .store import CommandMapStore, SettingsFileStore, default_settings_path

__all__ = [
    "DEFAULT_TARGETS",
    "FULL_PATH_PLACEHOLDER",
    "Dialect",
    "HookPayload",
    "InjectionResult",
    "LanguageTarget",
    "apply_hook",
    "build_hook",
    "inject",
    "posix_quote",
    "posix_unquote",
    "remove_hooks",
    "select_dialect",
    "strip_hooks",
    "CommandMapStore",
    "SettingsFileStore",
    "default_settings_path",
]
