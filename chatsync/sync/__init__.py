"""State sync engine module."""

from .engine import SyncAction, SyncEngine
from .merge import merge_app_state

__all__ = ["SyncAction", "SyncEngine", "merge_app_state"]
