"""
Configuration settings with environment variable loading.

Only process-level options live here (where data is kept, how the HTTP
transport behaves). Sync credentials are part of the persisted sync config
and are edited with ``chatsync configure``.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..locales import LOCALES

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class HttpConfig:
    """Transport options shared by every remote client."""
    timeout: float = 30.0
    max_retries: int = 0

    def __post_init__(self):
        if self.timeout <= 0:
            raise ConfigurationError("CHATSYNC_HTTP_TIMEOUT must be positive")
        if self.max_retries < 0:
            raise ConfigurationError("CHATSYNC_HTTP_MAX_RETRIES must not be negative")


@dataclass(frozen=True)
class StorageConfig:
    """Local storage locations."""
    database_path: Path = field(default_factory=lambda: Path("data/chatsync.db"))
    export_dir: Path = field(default_factory=lambda: Path("backups"))

    def __post_init__(self):
        object.__setattr__(self, 'database_path', Path(self.database_path))
        object.__setattr__(self, 'export_dir', Path(self.export_dir))


@dataclass(frozen=True)
class Settings:
    """
    Application settings container.

    All configuration is loaded from environment variables.
    """
    storage: StorageConfig = field(default_factory=StorageConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    locale: str = "en"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.locale not in LOCALES:
            raise ConfigurationError(
                f"CHATSYNC_LOCALE must be one of {sorted(LOCALES)}, got '{self.locale}'"
            )


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from environment variables.

    Optionally loads from a .env file first.

    Args:
        env_file: Optional path to .env file

    Returns:
        Configured Settings instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if env_file and env_file.exists():
        _load_env_file(env_file)
    elif Path(".env").exists():
        _load_env_file(Path(".env"))

    try:
        storage = StorageConfig(
            database_path=Path(os.getenv("CHATSYNC_DATABASE_PATH", "data/chatsync.db")),
            export_dir=Path(os.getenv("CHATSYNC_EXPORT_DIR", "backups")),
        )

        http = HttpConfig(
            timeout=float(os.getenv("CHATSYNC_HTTP_TIMEOUT", "30.0")),
            max_retries=int(os.getenv("CHATSYNC_HTTP_MAX_RETRIES", "0")),
        )

        settings = Settings(
            storage=storage,
            http=http,
            locale=os.getenv("CHATSYNC_LOCALE", "en").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

        logger.debug(f"Settings: {settings}")
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e


def _load_env_file(path: Path) -> None:
    """
    Load environment variables from a file.

    Accepts KEY=value and shell-style `export KEY=value` lines, with
    optional quotes. Blank lines and # comments are skipped.
    Variables already present in the environment take precedence.
    """
    logger.debug(f"Loading environment from {path}")

    with open(path, encoding="utf-8") as f:
        for line_num, raw in enumerate(f, 1):
            line = raw.strip()
            if line.startswith("export "):
                line = line[len("export "):].lstrip()

            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                logger.warning(f"Invalid line {line_num} in {path}: no '=' found")
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                value = value[1:-1]

            if key not in os.environ:
                os.environ[key] = value
