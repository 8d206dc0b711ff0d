"""Base exceptions for faaah."""


class FaaahError(Exception):
    """Base exception for all faaah errors."""

    pass


class ConfigError(FaaahError):
    """Configuration could not be loaded or saved."""

    pass


class CommandStoreError(FaaahError):
    """Command-map store operation error."""

    pass
