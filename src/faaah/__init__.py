"""faaah - play a sound when your tests, builds or scripts fail."""

__version__ = "0.3.0"
