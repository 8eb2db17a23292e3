"""
Versioned migrations for the persisted sync config.

Each step is tagged with the version it upgrades to and is applied when
the stored record is older than that version. Steps run in order, so a
record several versions behind is brought current in one pass. There is
no downgrade path.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Callable

from ..constants import LEGACY_CORS_PROXY_URL, STORAGE_KEY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    """A single one-way upgrade of the persisted record."""
    version: float
    description: str
    apply: Callable[[dict], None]


def _force_upstash_username(state: dict) -> None:
    # Old builds saved a wrong default username for the hosted KV store
    upstash = state.setdefault("upstash", {})
    upstash["username"] = STORAGE_KEY


def _clear_legacy_proxy_url(state: dict) -> None:
    if state.get("proxyUrl") == LEGACY_CORS_PROXY_URL:
        state["proxyUrl"] = ""


MIGRATIONS: tuple[Migration, ...] = (
    Migration(1.1, "reset upstash username to the storage key", _force_upstash_username),
    Migration(1.2, "drop the legacy CORS proxy default", _clear_legacy_proxy_url),
)

CURRENT_VERSION = MIGRATIONS[-1].version


def migrate(state: dict, version: float) -> dict:
    """
    Upgrade a persisted sync config record.

    The input is not modified.

    Args:
        state: Record as read from storage
        version: Version the record was written with

    Returns:
        A new record with every newer migration applied
    """
    new_state = copy.deepcopy(state)

    for migration in MIGRATIONS:
        if version < migration.version:
            logger.info(f"Migrating sync config to v{migration.version}: {migration.description}")
            migration.apply(new_state)

    return new_state
