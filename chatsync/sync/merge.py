"""
Merging of two application state snapshots.

``merge_app_state`` folds a remote snapshot into the local one in place.
Each store has its own rule; stores without one use last-write-wins on
``lastUpdateTime``.
"""

import copy
import logging
from datetime import datetime
from typing import Any, Callable

from ..constants import StoreKey
from ..storage.app_state import AppState

logger = logging.getLogger(__name__)

StoreMerger = Callable[[dict, dict], None]


# Formats produced by Date.prototype.toLocaleString() in the chat app
LOCALE_DATE_FORMATS = (
    "%Y/%m/%d %H:%M:%S",        # zh-CN: 2024/3/1 10:00:00
    "%m/%d/%Y, %I:%M:%S %p",    # en-US: 3/1/2024, 10:00:00 AM
    "%d/%m/%Y, %H:%M:%S",       # en-GB: 01/03/2024, 10:00:00
    "%d.%m.%Y, %H:%M:%S",       # de-DE: 1.3.2024, 10:00:00
)


def _timestamp(value: Any) -> float:
    """
    Best-effort sort key for the dates found in chat data.

    Accepts epoch milliseconds, ISO strings and the locale formats in
    ``LOCALE_DATE_FORMATS``; anything else sorts first.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, str):
        return 0.0

    # Newer ICU data puts a narrow no-break space before AM/PM
    text = value.strip().replace("\u202f", " ").replace("\xa0", " ")

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp() * 1000
    except ValueError:
        pass

    for fmt in LOCALE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).timestamp() * 1000
        except ValueError:
            continue

    logger.debug(f"Unrecognized date {value!r}, sorting it first")
    return 0.0


def deep_update(target: dict, source: dict) -> dict:
    """Recursively copy ``source`` into ``target``; source values win."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            deep_update(target[key], value)
        else:
            target[key] = copy.deepcopy(value)
    return target


def merge_chat_store(local: dict, remote: dict) -> None:
    """
    Union sessions by id and messages by id within shared sessions.

    Sessions without an id never match another session; remote ones are
    appended as they are.
    """
    local_sessions = local.setdefault("sessions", [])
    by_id = {session["id"]: session for session in local_sessions if session.get("id")}

    for remote_session in remote.get("sessions", []):
        # Empty chats carry nothing worth merging
        if not remote_session.get("messages"):
            continue

        session_id = remote_session.get("id")
        local_session = by_id.get(session_id) if session_id else None
        if local_session is None:
            local_sessions.append(copy.deepcopy(remote_session))
            continue

        messages = local_session.setdefault("messages", [])
        known_ids = {m.get("id") for m in messages}
        for message in remote_session["messages"]:
            if message.get("id") not in known_ids:
                messages.append(copy.deepcopy(message))
        messages.sort(key=lambda m: _timestamp(m.get("date")))

    local_sessions.sort(key=lambda s: _timestamp(s.get("lastUpdate")), reverse=True)


def merge_prompt_store(local: dict, remote: dict) -> None:
    """Union prompts by id; local prompts win."""
    local["prompts"] = {**remote.get("prompts", {}), **local.get("prompts", {})}


def merge_with_update(local: dict, remote: dict) -> None:
    """
    Last-write-wins deep merge on ``lastUpdateTime``.

    Ties go to the remote side.
    """
    local_time = local.get("lastUpdateTime") or 0
    remote_time = remote.get("lastUpdateTime") or 0

    if local_time > remote_time:
        merged = deep_update(copy.deepcopy(remote), local)
        local.clear()
        local.update(merged)
    else:
        deep_update(local, remote)


STORE_MERGERS: dict[str, StoreMerger] = {
    StoreKey.CHAT.value: merge_chat_store,
    StoreKey.PROMPT.value: merge_prompt_store,
    StoreKey.MASK.value: merge_with_update,
    StoreKey.CONFIG.value: merge_with_update,
    StoreKey.ACCESS.value: merge_with_update,
}


def merge_app_state(local_state: AppState, remote_state: AppState) -> AppState:
    """
    Merge ``remote_state`` into ``local_state`` in place.

    Only stores present locally are considered; a store missing from the
    remote snapshot is left untouched.

    Returns:
        ``local_state``, for convenience
    """
    for key, local_store in local_state.items():
        remote_store = remote_state.get(key)
        if not isinstance(remote_store, dict) or not isinstance(local_store, dict):
            continue

        merger = STORE_MERGERS.get(key, merge_with_update)
        merger(local_store, remote_store)
        logger.debug(f"Merged store {key}")

    return local_state
