"""
Persistent storage models.

These models describe the sync configuration and the raw records kept
in the local store.
"""

import json
from dataclasses import astuple, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from ..constants import STORAGE_KEY


class ProviderType(str, Enum):
    """Remote storage backends."""
    WEBDAV = "webdav"
    UPSTASH = "upstash"


@dataclass
class WebDavConfig:
    """Credentials for a WebDAV server."""
    endpoint: str = ""
    username: str = ""
    password: str = ""

    @property
    def has_account(self) -> bool:
        return bool(self.username) and bool(self.password)

    def to_dict(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "username": self.username,
            "password": self.password,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WebDavConfig":
        defaults = cls()
        return cls(
            endpoint=data.get("endpoint", defaults.endpoint),
            username=data.get("username", defaults.username),
            password=data.get("password", defaults.password),
        )

    def __repr__(self) -> str:
        """Never expose password in repr."""
        return f"WebDavConfig(endpoint='{self.endpoint}', username='{self.username}', password='***')"


@dataclass
class UpstashConfig:
    """Credentials for an Upstash-style hosted key-value service."""
    endpoint: str = ""
    username: str = STORAGE_KEY
    api_key: str = ""

    @property
    def has_account(self) -> bool:
        return bool(self.username) and bool(self.api_key)

    def to_dict(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "username": self.username,
            "apiKey": self.api_key,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UpstashConfig":
        defaults = cls()
        return cls(
            endpoint=data.get("endpoint", defaults.endpoint),
            username=data.get("username", defaults.username),
            api_key=data.get("apiKey", defaults.api_key),
        )

    def __repr__(self) -> str:
        """Never expose API key in repr."""
        return f"UpstashConfig(endpoint='{self.endpoint}', username='{self.username}', api_key='***')"


ProviderConfig = Union[WebDavConfig, UpstashConfig]


@dataclass
class SyncConfig:
    """
    Sync settings as edited by the user and persisted locally.

    Exactly one provider sub-config is active at a time, selected by
    ``provider``.

    Attributes:
        provider: Active remote backend
        use_proxy: Route requests through the sync proxy
        proxy_url: Base URL of the sync proxy
        webdav: WebDAV credentials
        upstash: Upstash credentials
        last_sync_time: Milliseconds since epoch of the last completed sync
        last_provider: Provider used by the last completed sync
    """
    provider: ProviderType = ProviderType.WEBDAV
    use_proxy: bool = True
    proxy_url: str = ""
    webdav: WebDavConfig = field(default_factory=WebDavConfig)
    upstash: UpstashConfig = field(default_factory=UpstashConfig)
    last_sync_time: int = 0
    last_provider: str = ""

    @property
    def active_config(self) -> ProviderConfig:
        """Return the sub-config of the selected provider."""
        if self.provider is ProviderType.WEBDAV:
            return self.webdav
        return self.upstash

    @property
    def cloud_sync(self) -> bool:
        """True if every field of the active sub-config is a non-empty string."""
        return all(len(str(value)) > 0 for value in astuple(self.active_config))

    @property
    def effective_proxy_url(self) -> Optional[str]:
        """Proxy base URL if proxying is enabled and configured."""
        if self.use_proxy and self.proxy_url:
            return self.proxy_url
        return None

    def to_dict(self) -> dict:
        """Convert to the persisted record shape."""
        return {
            "provider": self.provider.value,
            "useProxy": self.use_proxy,
            "proxyUrl": self.proxy_url,
            "webdav": self.webdav.to_dict(),
            "upstash": self.upstash.to_dict(),
            "lastSyncTime": self.last_sync_time,
            "lastProvider": self.last_provider,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncConfig":
        """Create from a persisted record, filling missing keys with defaults."""
        defaults = cls()
        return cls(
            provider=ProviderType(data.get("provider", defaults.provider.value)),
            use_proxy=bool(data.get("useProxy", defaults.use_proxy)),
            proxy_url=data.get("proxyUrl", defaults.proxy_url),
            webdav=WebDavConfig.from_dict(data.get("webdav") or {}),
            upstash=UpstashConfig.from_dict(data.get("upstash") or {}),
            last_sync_time=int(data.get("lastSyncTime", defaults.last_sync_time)),
            last_provider=data.get("lastProvider", defaults.last_provider),
        )


@dataclass
class StoredRecord:
    """
    A named JSON document in the local store.

    Attributes:
        name: Store name (primary key)
        value: Decoded JSON value
        version: Schema version the value was written with
        updated_at: When the record was last written
    """
    name: str
    value: Any
    version: float = 0.0
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: tuple) -> "StoredRecord":
        """Create from SQLite row tuple."""
        name, value, version, updated_at = row

        updated = None
        if updated_at:
            updated = datetime.fromisoformat(updated_at)

        return cls(
            name=name,
            value=json.loads(value),
            version=float(version or 0.0),
            updated_at=updated,
        )
