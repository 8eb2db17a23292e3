"""Remote sync backends."""

from .client import RemoteAPIError, RemoteClient
from .factory import create_sync_client
from .upstash import UpstashClient
from .webdav import WebDavClient

__all__ = ["RemoteAPIError", "RemoteClient", "UpstashClient", "WebDavClient", "create_sync_client"]
