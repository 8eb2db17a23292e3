"""
Upstash (hosted Redis REST) sync backend.

Upstash caps request bodies at 1 MB, so the app state is split into
chunks stored under ``<key>-chunk-<i>`` with the number of chunks kept in
``<key>-chunk-count``.
"""

import logging
from typing import Iterator, Optional
from urllib.parse import quote, urlencode

import requests

from ..constants import STORAGE_KEY, ApiPath
from ..storage.models import SyncConfig
from .client import RemoteAPIError, RemoteClient

logger = logging.getLogger(__name__)

MAX_CHUNK_BYTES = 1000 * 1000


def split_chunks(value: str, max_bytes: int = MAX_CHUNK_BYTES) -> Iterator[str]:
    """
    Split text into pieces of at most ``max_bytes`` UTF-8 bytes.

    Cuts never fall inside a multi-byte character, and joining the
    pieces gives back the original text.
    """
    if max_bytes < 4:
        raise ValueError("max_bytes must fit at least one UTF-8 character")

    buf = value.encode("utf-8")
    while buf:
        cut = min(len(buf), max_bytes)
        # Back off continuation bytes (0b10xxxxxx)
        while cut < len(buf) and (buf[cut] & 0xC0) == 0x80:
            cut -= 1
        yield buf[:cut].decode("utf-8")
        buf = buf[cut:]


class UpstashClient(RemoteClient):
    """
    Client for the Upstash Redis REST API.

    Usage:
        client = UpstashClient(config)
        client.set("ignored", payload)
        payload = client.get("ignored")
    """

    name = "upstash"
    max_chunk_bytes = MAX_CHUNK_BYTES

    def __init__(self, config: SyncConfig, timeout: float = 30.0, max_retries: int = 0):
        super().__init__(config, timeout=timeout, max_retries=max_retries)
        self.kv = config.upstash
        self.store_key = self.kv.username or STORAGE_KEY
        self._session.headers.update({"Authorization": f"Bearer {self.kv.api_key}"})

    def __repr__(self) -> str:
        return f"UpstashClient(endpoint='{self.kv.endpoint}', store_key='{self.store_key}')"

    @property
    def chunk_count_key(self) -> str:
        return f"{self.store_key}-chunk-count"

    def chunk_index_key(self, index: int) -> str:
        return f"{self.store_key}-chunk-{index}"

    def path(self, path: str) -> str:
        """Build the REST URL for a command path such as ``get/<key>``."""
        path = path.strip("/")

        if self.proxy_url:
            base = self.proxy_url.rstrip("/")
            query = urlencode({"endpoint": self.kv.endpoint})
            return f"{base}{ApiPath.UPSTASH.value}{path}/?{query}"

        return f"{self.kv.endpoint.rstrip('/')}/{path}"

    def check(self) -> bool:
        """Read the store key; only a 200 counts as reachable."""
        try:
            response = self._session.request(
                "GET",
                self.path(f"get/{quote(self.store_key)}"),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"[Upstash] failed to check: {e}")
            return False

        logger.info(f"[Upstash] check {response.status_code} {response.reason}")
        return response.status_code == 200

    def redis_get(self, key: str) -> Optional[str]:
        """Run ``GET key`` and return the raw result (None if unset)."""
        response = self._request("GET", self.path(f"get/{quote(key)}"))
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteAPIError(f"Malformed upstash response for {key}: {e}") from e

        if not isinstance(body, dict):
            raise RemoteAPIError(f"Malformed upstash response for {key}: {body!r}")
        return body.get("result")

    def redis_set(self, key: str, value: str) -> None:
        """Run ``SET key value`` with the value as request body."""
        self._request("POST", self.path(f"set/{quote(key)}"), data=value.encode("utf-8"))

    def get(self, key: str) -> str:
        """Reassemble the stored value from its chunks."""
        raw_count = self.redis_get(self.chunk_count_key)
        try:
            chunk_count = int(raw_count)
        except (TypeError, ValueError):
            logger.info(f"[Upstash] no chunk count stored under {self.chunk_count_key}")
            return ""

        chunks = [self.redis_get(self.chunk_index_key(i)) or "" for i in range(chunk_count)]
        logger.info(f"[Upstash] get {chunk_count} chunk(s) for {self.store_key}")
        return "".join(chunks)

    def set(self, key: str, value: str) -> None:
        """Write the value chunk by chunk, then the chunk count."""
        index = 0
        for chunk in split_chunks(value, self.max_chunk_bytes):
            self.redis_set(self.chunk_index_key(index), chunk)
            index += 1

        self.redis_set(self.chunk_count_key, str(index))
        logger.info(f"[Upstash] set {index} chunk(s) for {self.store_key}")
