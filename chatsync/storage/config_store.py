"""
Persistence for the sync configuration.

The config is loaded once (migrating old records) and kept as an owned
``SyncConfig``. Callers mutate it and call ``save()`` explicitly.
"""

import logging
from typing import Optional

from ..constants import StoreKey
from .migrations import CURRENT_VERSION, migrate
from .models import SyncConfig
from .state_store import StateStore

logger = logging.getLogger(__name__)


class SyncConfigStore:
    """
    Owns the sync configuration and writes it back on request.

    Usage:
        configs = SyncConfigStore(state_store)
        configs.config.webdav.username = "me"
        configs.save()
    """

    def __init__(self, state_store: StateStore):
        self.state_store = state_store
        self._config: Optional[SyncConfig] = None

    @property
    def config(self) -> SyncConfig:
        """The current config, loaded on first access."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> SyncConfig:
        """
        Read the config from storage.

        A missing record yields defaults. A record written by an older
        version is migrated and saved back at the current version.
        """
        record = self.state_store.get(StoreKey.SYNC.value)

        if record is None:
            logger.debug("No sync config stored, using defaults")
            self._config = SyncConfig()
            return self._config

        data = record.value
        if record.version < CURRENT_VERSION:
            logger.info(f"Upgrading sync config from v{record.version} to v{CURRENT_VERSION}")
            data = migrate(data, record.version)
            self.state_store.save(StoreKey.SYNC.value, data, version=CURRENT_VERSION)

        self._config = SyncConfig.from_dict(data)
        return self._config

    def save(self) -> None:
        """Persist the current config."""
        self.state_store.save(StoreKey.SYNC.value, self.config.to_dict(), version=CURRENT_VERSION)
        logger.debug(f"Sync config saved: {self.config}")
