"""
Sync engine.

Orchestrates upload, download and bidirectional sync of the local app
state against the configured remote backend, plus file export/import.

Every network call is made sequentially. Concurrent runs are not
serialized; callers must not start a second run while one is in flight.
"""

import logging
import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..locales import DEFAULT_LOCALE, get_text
from ..remote.client import RemoteClient
from ..remote.factory import create_sync_client
from ..storage.app_state import AppState, AppStateStore, dump_app_state, load_app_state
from ..storage.config_store import SyncConfigStore
from ..storage.files import download_as, read_from_file
from ..storage.models import SyncConfig
from .merge import merge_app_state

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """What a sync run does."""
    SYNC = "SYNC"
    UPLOAD = "UPLOAD"
    DOWNLOAD = "DOWNLOAD"


class SyncEngine:
    """
    Keeps the local app state and a remote copy in step.

    Actions:
    - UPLOAD overwrites the remote copy with local state
    - DOWNLOAD overwrites local state with the remote copy, if there is one
    - SYNC merges the remote copy into local state and uploads the result,
      or seeds the remote with local state when it is empty

    UPLOAD and DOWNLOAD let transport errors propagate untouched, while
    SYNC logs failures reading the remote copy before re-raising them.

    Usage:
        engine = SyncEngine(
            config_store=SyncConfigStore(store),
            app_state=AppStateStore(store),
            export_dir=Path("backups"),
        )

        if engine.cloud_sync():
            engine.sync()
    """

    def __init__(
        self,
        config_store: SyncConfigStore,
        app_state: AppStateStore,
        export_dir: Path = Path("backups"),
        timeout: float = 30.0,
        max_retries: int = 0,
        locale: str = DEFAULT_LOCALE,
        notify: Optional[Callable[[str], None]] = None,
        on_reload: Optional[Callable[[], None]] = None,
        merge: Callable[[AppState, AppState], AppState] = merge_app_state,
        client_factory: Callable[..., RemoteClient] = create_sync_client,
    ):
        """
        Initialize sync engine.

        Args:
            config_store: Owner of the persisted sync config
            app_state: Local app state accessor
            export_dir: Where backups are written
            timeout: Remote request timeout in seconds
            max_retries: Transport-level retries for remote clients
            locale: Language of user notifications
            notify: Receives user-facing messages
            on_reload: Called after an import replaced local state
            merge: Merges a remote snapshot into local state in place
            client_factory: Builds a remote client for a provider
        """
        self.config_store = config_store
        self.app_state = app_state
        self.export_dir = Path(export_dir)
        self.timeout = timeout
        self.max_retries = max_retries
        self.locale = locale
        self.notify = notify or (lambda message: logger.warning(message))
        self.on_reload = on_reload or (lambda: None)
        self.merge = merge
        self.client_factory = client_factory

    @property
    def config(self) -> SyncConfig:
        return self.config_store.config

    def cloud_sync(self) -> bool:
        """True if every field of the active provider config is filled in."""
        return self.config.cloud_sync

    def has_account(self) -> bool:
        """
        Check that the active provider has credentials.

        WebDAV needs a username and password, Upstash a username and API key.
        """
        config = self.config
        logger.debug(f"hasAccount {config.provider.value} {config.active_config!r}")
        return config.active_config.has_account

    def mark_sync_time(self) -> None:
        """Record now as the last sync time for the current provider."""
        config = self.config
        config.last_sync_time = int(time.time() * 1000)
        config.last_provider = config.provider.value
        self.config_store.save()

    def get_client(self) -> RemoteClient:
        """Build a fresh client for the active provider."""
        config = self.config
        return self.client_factory(
            config.provider,
            config,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    def export_backup(self) -> Path:
        """
        Write the local app state to a timestamped backup file.

        Returns:
            Path of the backup
        """
        state = self.app_state.get_local_app_state()

        now = datetime.now()
        date_part = f"{now.strftime('%x').replace('/', '_')} {now.strftime('%X').replace(':', '_')}"
        file_name = f"Backup-{date_part}.json"

        path = download_as(dump_app_state(state), file_name, self.export_dir)
        logger.info(f"[Export] Backup written to {path}")
        return path

    def import_backup(self, path: Path) -> bool:
        """
        Merge a backup file into the local app state.

        Parse or merge failures are logged and reported through ``notify``;
        local state is left as it was and no reload happens.

        Args:
            path: Backup file to import

        Returns:
            True if the backup was merged and persisted
        """
        raw_content = read_from_file(path)

        try:
            remote_state = load_app_state(raw_content)
            local_state = self.app_state.get_local_app_state()
            self.merge(local_state, remote_state)
            self.app_state.set_local_app_state(local_state)
        except Exception as e:
            logger.error(f"[Import] {e}", exc_info=True)
            self.notify(get_text("import_failed", self.locale))
            return False

        logger.info(f"[Import] Merged backup {path}")
        self.on_reload()
        return True

    def sync(self, action: SyncAction = SyncAction.SYNC) -> None:
        """
        Run one sync action.

        Skips silently when no account is configured. On success the sync
        time is recorded, except when SYNC or DOWNLOAD finds the remote empty.

        Args:
            action: SYNC, UPLOAD or DOWNLOAD

        Raises:
            RemoteAPIError: Transport errors, for every action
            ValueError: Remote state that is not a JSON object
        """
        action = SyncAction(action)

        if not self.has_account():
            logger.info("[Sync] No account found, skipping sync.")
            return

        local_state = self.app_state.get_local_app_state()
        username = self.config.active_config.username

        with self.get_client() as client:
            if action is SyncAction.SYNC:
                logger.info(f"[Sync] Syncing state {username}")
                try:
                    remote_content = client.get(username)
                    if remote_content:
                        remote_state = load_app_state(remote_content)
                        self.merge(local_state, remote_state)
                        self.app_state.set_local_app_state(local_state)
                except Exception as e:
                    logger.error(f"[Sync] failed to get remote state: {e}")
                    raise

                if not remote_content:
                    # Bootstrap upload only; the sync time is not recorded
                    client.set(username, dump_app_state(local_state))
                    logger.info("[Sync] Remote state is empty, using local state instead.")
                    return

                client.set(username, dump_app_state(local_state))

            elif action is SyncAction.UPLOAD:
                logger.info(f"[Sync] Uploading state {username}")
                client.set(username, dump_app_state(local_state))

            elif action is SyncAction.DOWNLOAD:
                logger.info(f"[Sync] Downloading state {username}")
                remote_content = client.get(username)
                if not remote_content:
                    logger.info("[Sync] Remote state is empty, using local state instead.")
                    return

                self.app_state.set_local_app_state(load_app_state(remote_content))

        self.mark_sync_time()

    def download(self) -> None:
        self.sync(SyncAction.DOWNLOAD)

    def upload(self) -> None:
        self.sync(SyncAction.UPLOAD)

    def check(self) -> bool:
        """Check connectivity of the active provider; errors propagate."""
        with self.get_client() as client:
            return client.check()

