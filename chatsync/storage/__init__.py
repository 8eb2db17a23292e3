"""Persistent state storage module."""

from .app_state import AppState, AppStateStore
from .config_store import SyncConfigStore
from .models import ProviderType, SyncConfig, UpstashConfig, WebDavConfig
from .state_store import StateStore, StateStoreError

__all__ = [
    "AppState",
    "AppStateStore",
    "ProviderType",
    "StateStore",
    "StateStoreError",
    "SyncConfig",
    "SyncConfigStore",
    "UpstashConfig",
    "WebDavConfig",
]
