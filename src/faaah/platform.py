"""Host platform detection."""

import sys
from enum import Enum


class Platform(Enum):
    """Shell family of the host the run tool executes commands on."""

    POSIX = "posix"
    WINDOWS = "windows"

    @classmethod
    def current(cls) -> "Platform":
        """Detect the platform of the running interpreter."""
        return cls.from_sys_platform(sys.platform)

    @classmethod
    def from_sys_platform(cls, value: str) -> "Platform":
        """Map a ``sys.platform`` string to a Platform."""
        if value.startswith("win"):
            return cls.WINDOWS
        return cls.POSIX
