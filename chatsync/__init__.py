"""Local persistence and cloud sync for chat application state."""

__version__ = "0.1.0"
