"""
Local application state accessor.

The application state is the set of user-facing stores (chat sessions,
masks, prompts, settings). It is read and written wholesale.
"""

import copy
import json
import logging
from typing import Any

from ..constants import StoreKey
from .models import StoredRecord
from .state_store import StateStore

logger = logging.getLogger(__name__)

AppState = dict[str, Any]

APP_STORE_KEYS: tuple[str, ...] = (
    StoreKey.CHAT.value,
    StoreKey.ACCESS.value,
    StoreKey.CONFIG.value,
    StoreKey.MASK.value,
    StoreKey.PROMPT.value,
)

DEFAULT_STORE_STATES: dict[str, dict] = {
    StoreKey.CHAT.value: {"sessions": [], "currentSessionIndex": 0, "lastUpdateTime": 0},
    StoreKey.ACCESS.value: {"lastUpdateTime": 0},
    StoreKey.CONFIG.value: {"lastUpdateTime": 0},
    StoreKey.MASK.value: {"masks": {}, "lastUpdateTime": 0},
    StoreKey.PROMPT.value: {"prompts": {}, "lastUpdateTime": 0},
}

APP_STATE_VERSION = 1.0


def dump_app_state(state: AppState) -> str:
    """Serialize app state compactly, the way the web client does."""
    return json.dumps(state, ensure_ascii=False, separators=(",", ":"))


def load_app_state(text: str) -> AppState:
    """
    Parse serialized app state.

    Raises:
        ValueError: If the text is not JSON or not a JSON object
    """
    state = json.loads(text)
    if not isinstance(state, dict):
        raise ValueError(f"App state must be a JSON object, got {type(state).__name__}")
    return state


class AppStateStore:
    """Reads and writes the full application state in the local store."""

    def __init__(self, state_store: StateStore):
        self.state_store = state_store

    def get_local_app_state(self) -> AppState:
        """
        Snapshot every app store.

        Stores that were never written come back with their defaults.
        """
        state: AppState = {}
        for key in APP_STORE_KEYS:
            record = self.state_store.get(key)
            if record is None:
                state[key] = copy.deepcopy(DEFAULT_STORE_STATES[key])
            else:
                state[key] = record.value
        return state

    def set_local_app_state(self, state: AppState) -> None:
        """
        Replace the local stores present in ``state``.

        Unknown keys are ignored so a remote snapshot can never overwrite
        the sync config or other local-only data.
        """
        records = []
        for key, value in state.items():
            if key not in APP_STORE_KEYS:
                logger.warning(f"Ignoring unknown store in app state: {key}")
                continue
            records.append(StoredRecord(name=key, value=value, version=APP_STATE_VERSION))

        self.state_store.save_many(records)
        logger.info(f"Local app state updated ({len(records)} stores)")
