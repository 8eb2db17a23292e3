"""
Shared constants for stores and remote endpoints.
"""

from enum import Enum

# Remote key / folder name used when the user has not picked one
STORAGE_KEY = "chatgpt-next-web"


class StoreKey(str, Enum):
    """Names of the locally persisted stores."""
    CHAT = "chat-next-web-store"
    ACCESS = "access-control"
    CONFIG = "app-config"
    MASK = "mask-store"
    PROMPT = "prompt-store"
    SYNC = "sync"


class ApiPath(str, Enum):
    """Path prefixes served by the sync proxy."""
    WEBDAV = "/api/webdav/"
    UPSTASH = "/api/upstash/"


# Proxy default shipped before 1.2; it no longer resolves
LEGACY_CORS_PROXY_URL = "/api/cors/"
