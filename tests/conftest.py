"""
Pytest configuration and shared fixtures.

Provides a temp SQLite store, sample app state snapshots and an in-memory
remote client for sync engine tests.
"""

import copy
from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock

import pytest
import requests

from chatsync.constants import StoreKey
from chatsync.storage.app_state import AppStateStore
from chatsync.storage.config_store import SyncConfigStore
from chatsync.storage.models import ProviderType, SyncConfig, UpstashConfig, WebDavConfig
from chatsync.storage.state_store import StateStore
from chatsync.sync.engine import SyncEngine
from chatsync.sync.merge import merge_app_state


# ============================================================================
# Remote Fakes
# ============================================================================

class FakeRemoteClient:
    """In-memory stand-in for a remote client."""

    def __init__(self, data: Optional[dict] = None, reachable: bool = True):
        self.data = data if data is not None else {}
        self.reachable = reachable
        self.get_calls: list[str] = []
        self.set_calls: list[tuple[str, str]] = []
        self.get_error: Optional[Exception] = None
        self.set_error: Optional[Exception] = None
        self.closed = False

    def get(self, key: str) -> str:
        self.get_calls.append(key)
        if self.get_error:
            raise self.get_error
        return self.data.get(key, "")

    def set(self, key: str, value: str) -> None:
        self.set_calls.append((key, value))
        if self.set_error:
            raise self.set_error
        self.data[key] = value

    def check(self) -> bool:
        return self.reachable

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeRemoteClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def make_response(status_code: int, body: bytes = b"", reason: str = "") -> requests.Response:
    """Build a real requests.Response for mocked sessions."""
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.reason = reason or ("OK" if status_code < 400 else "Error")
    response.url = "https://remote.test/"
    return response


# ============================================================================
# Config Fixtures
# ============================================================================

@pytest.fixture
def webdav_config() -> SyncConfig:
    """Sync config with complete WebDAV credentials."""
    return SyncConfig(
        provider=ProviderType.WEBDAV,
        use_proxy=False,
        webdav=WebDavConfig(
            endpoint="https://dav.example.com/remote.php/dav",
            username="alice",
            password="s3cret",
        ),
    )


@pytest.fixture
def upstash_config() -> SyncConfig:
    """Sync config with complete Upstash credentials."""
    return SyncConfig(
        provider=ProviderType.UPSTASH,
        use_proxy=False,
        upstash=UpstashConfig(
            endpoint="https://eu1-upstash.example.io",
            username="alice-store",
            api_key="AXtoken",
        ),
    )


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Path of a fresh database file."""
    return tmp_path / "data" / "chatsync.db"


@pytest.fixture
def state_store(temp_db_path: Path) -> StateStore:
    """Create a fresh StateStore with temp database."""
    return StateStore(temp_db_path)


@pytest.fixture
def config_store(state_store: StateStore) -> SyncConfigStore:
    return SyncConfigStore(state_store)


@pytest.fixture
def app_state_store(state_store: StateStore) -> AppStateStore:
    return AppStateStore(state_store)


# ============================================================================
# App State Fixtures
# ============================================================================

@pytest.fixture
def local_app_state() -> dict:
    """App state as kept on this device."""
    return {
        StoreKey.CHAT.value: {
            "sessions": [
                {
                    "id": "s1",
                    "topic": "Trip planning",
                    "lastUpdate": 1_700_000_200_000,
                    "messages": [
                        {"id": "m1", "role": "user", "content": "Where to?", "date": "2023-11-14T22:13:20"},
                    ],
                },
            ],
            "currentSessionIndex": 0,
            "lastUpdateTime": 1_700_000_200_000,
        },
        StoreKey.ACCESS.value: {"accessCode": "local", "lastUpdateTime": 100},
        StoreKey.CONFIG.value: {"theme": "dark", "fontSize": 14, "lastUpdateTime": 100},
        StoreKey.MASK.value: {"masks": {}, "lastUpdateTime": 0},
        StoreKey.PROMPT.value: {"prompts": {"p1": {"title": "Local"}}, "lastUpdateTime": 0},
    }


@pytest.fixture
def remote_app_state() -> dict:
    """App state as uploaded by another device."""
    return {
        StoreKey.CHAT.value: {
            "sessions": [
                {
                    "id": "s1",
                    "topic": "Trip planning",
                    "lastUpdate": 1_700_000_100_000,
                    "messages": [
                        {"id": "m0", "role": "system", "content": "Be brief.", "date": "2023-11-14T22:00:00"},
                        {"id": "m1", "role": "user", "content": "Where to?", "date": "2023-11-14T22:13:20"},
                    ],
                },
                {
                    "id": "s2",
                    "topic": "Recipes",
                    "lastUpdate": 1_700_000_300_000,
                    "messages": [
                        {"id": "m9", "role": "user", "content": "Pasta?", "date": "2023-11-14T22:20:00"},
                    ],
                },
            ],
            "currentSessionIndex": 1,
            "lastUpdateTime": 1_700_000_300_000,
        },
        StoreKey.ACCESS.value: {"accessCode": "remote", "lastUpdateTime": 200},
        StoreKey.CONFIG.value: {"theme": "light", "lastUpdateTime": 50},
        StoreKey.MASK.value: {"masks": {"k1": {"name": "Coder"}}, "lastUpdateTime": 10},
        StoreKey.PROMPT.value: {"prompts": {"p1": {"title": "Remote"}, "p2": {"title": "Other"}}, "lastUpdateTime": 0},
    }


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def fake_remote() -> FakeRemoteClient:
    return FakeRemoteClient()


@pytest.fixture
def merge_spy() -> MagicMock:
    """Real merge wrapped to count calls."""
    return MagicMock(side_effect=merge_app_state)


@pytest.fixture
def notify() -> MagicMock:
    return MagicMock()


@pytest.fixture
def on_reload() -> MagicMock:
    return MagicMock()


@pytest.fixture
def engine(
    tmp_path: Path,
    config_store: SyncConfigStore,
    app_state_store: AppStateStore,
    webdav_config: SyncConfig,
    fake_remote: FakeRemoteClient,
    merge_spy: MagicMock,
    notify: MagicMock,
    on_reload: MagicMock,
) -> SyncEngine:
    """Engine with WebDAV credentials wired to the in-memory remote."""
    config = config_store.config
    config.provider = webdav_config.provider
    config.use_proxy = webdav_config.use_proxy
    config.webdav = copy.deepcopy(webdav_config.webdav)
    config_store.save()

    return SyncEngine(
        config_store=config_store,
        app_state=app_state_store,
        export_dir=tmp_path / "backups",
        notify=notify,
        on_reload=on_reload,
        merge=merge_spy,
        client_factory=lambda provider, config, **kwargs: fake_remote,
    )


@pytest.fixture
def mock_env(monkeypatch, tmp_path: Path):
    """Environment with every chatsync variable set."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CHATSYNC_DATABASE_PATH", str(tmp_path / "db" / "state.db"))
    monkeypatch.setenv("CHATSYNC_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("CHATSYNC_HTTP_TIMEOUT", "12.5")
    monkeypatch.setenv("CHATSYNC_HTTP_MAX_RETRIES", "2")
    monkeypatch.setenv("CHATSYNC_LOCALE", "cn")
    monkeypatch.setenv("LOG_LEVEL", "debug")


@pytest.fixture
def http_response():
    """Factory for real requests.Response objects."""
    return make_response
