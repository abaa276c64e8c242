"""etbridge - EmoTracker auto-tracking bridge for emulator memory."""

__version__ = "0.1.0"
