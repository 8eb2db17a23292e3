"""
Unit tests for the sync config model and its store.
"""

import pytest

from chatsync.constants import STORAGE_KEY, StoreKey
from chatsync.storage.config_store import SyncConfigStore
from chatsync.storage.migrations import CURRENT_VERSION
from chatsync.storage.models import ProviderType, SyncConfig, UpstashConfig, WebDavConfig
from chatsync.storage.state_store import StateStore


class TestCloudSync:
    """cloud_sync is true only when every active field is non-empty."""

    def test_defaults_are_not_enabled(self):
        assert SyncConfig().cloud_sync is False

    def test_complete_webdav(self, webdav_config: SyncConfig):
        assert webdav_config.cloud_sync is True

    def test_missing_webdav_endpoint(self, webdav_config: SyncConfig):
        webdav_config.webdav.endpoint = ""
        assert webdav_config.cloud_sync is False

    def test_whitespace_counts_as_filled(self):
        config = SyncConfig(webdav=WebDavConfig(endpoint=" ", username=" ", password=" "))
        assert config.cloud_sync is True

    def test_only_active_provider_matters(self, upstash_config: SyncConfig):
        # WebDAV is empty but inactive
        assert upstash_config.cloud_sync is True

        upstash_config.provider = ProviderType.WEBDAV
        assert upstash_config.cloud_sync is False


class TestHasAccount:

    @pytest.mark.parametrize(
        "username,password,expected",
        [("u", "", False), ("", "p", False), ("u", "p", True)],
    )
    def test_webdav(self, username, password, expected):
        assert WebDavConfig(username=username, password=password).has_account is expected

    @pytest.mark.parametrize(
        "username,api_key,expected",
        [("u", "", False), ("", "k", False), ("u", "k", True)],
    )
    def test_upstash(self, username, api_key, expected):
        assert UpstashConfig(username=username, api_key=api_key).has_account is expected


class TestSyncConfigModel:

    def test_active_config_follows_provider(self, webdav_config: SyncConfig):
        assert webdav_config.active_config is webdav_config.webdav

        webdav_config.provider = ProviderType.UPSTASH
        assert webdav_config.active_config is webdav_config.upstash

    def test_to_dict_shape(self, upstash_config: SyncConfig):
        data = upstash_config.to_dict()

        assert set(data) == {
            "provider", "useProxy", "proxyUrl", "webdav", "upstash", "lastSyncTime", "lastProvider",
        }
        assert data["provider"] == "upstash"
        assert data["upstash"] == {
            "endpoint": "https://eu1-upstash.example.io",
            "username": "alice-store",
            "apiKey": "AXtoken",
        }

    def test_from_dict_round_trip(self, upstash_config: SyncConfig):
        assert SyncConfig.from_dict(upstash_config.to_dict()) == upstash_config

    def test_from_dict_fills_defaults(self):
        config = SyncConfig.from_dict({"provider": "webdav", "webdav": {"username": "bob"}})

        assert config.webdav.username == "bob"
        assert config.webdav.password == ""
        assert config.upstash.username == STORAGE_KEY
        assert config.use_proxy is True

    def test_repr_hides_secrets(self, webdav_config: SyncConfig, upstash_config: SyncConfig):
        assert "s3cret" not in repr(webdav_config)
        assert "AXtoken" not in repr(upstash_config)

    def test_effective_proxy_url(self):
        config = SyncConfig(use_proxy=True, proxy_url="")
        assert config.effective_proxy_url is None

        config.proxy_url = "https://proxy.example.com"
        assert config.effective_proxy_url == "https://proxy.example.com"

        config.use_proxy = False
        assert config.effective_proxy_url is None


class TestSyncConfigStore:

    def test_defaults_when_nothing_stored(self, config_store: SyncConfigStore):
        assert config_store.config == SyncConfig()

    def test_save_and_reload(self, state_store: StateStore, config_store: SyncConfigStore):
        config_store.config.webdav.username = "carol"
        config_store.save()

        reloaded = SyncConfigStore(state_store).config

        assert reloaded.webdav.username == "carol"
        assert state_store.get(StoreKey.SYNC.value).version == CURRENT_VERSION

    def test_old_record_is_migrated_and_saved(self, state_store: StateStore):
        state_store.save(
            StoreKey.SYNC.value,
            {
                "provider": "upstash",
                "useProxy": True,
                "proxyUrl": "/api/cors/",
                "upstash": {"endpoint": "https://kv.example.io", "username": "wrong", "apiKey": "k"},
            },
            version=1.0,
        )

        config = SyncConfigStore(state_store).config

        assert config.upstash.username == STORAGE_KEY
        assert config.proxy_url == ""

        record = state_store.get(StoreKey.SYNC.value)
        assert record.version == CURRENT_VERSION
        assert record.value["proxyUrl"] == ""

    def test_current_record_is_not_migrated(self, state_store: StateStore):
        state_store.save(
            StoreKey.SYNC.value,
            {"provider": "upstash", "upstash": {"username": "mine"}},
            version=CURRENT_VERSION,
        )

        assert SyncConfigStore(state_store).config.upstash.username == "mine"
