"""Process configuration loaded from the environment."""

from .settings import ConfigurationError, HttpConfig, Settings, StorageConfig, load_settings

__all__ = ["ConfigurationError", "HttpConfig", "Settings", "StorageConfig", "load_settings"]
