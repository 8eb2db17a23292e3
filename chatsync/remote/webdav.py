"""
WebDAV sync backend.

The whole app state lives in a single file, ``<STORAGE_KEY>/backup.json``,
on the user's WebDAV server. Requests either go straight to the server or
through the sync proxy when one is configured.
"""

import logging
from urllib.parse import urlencode

import requests
from requests.auth import HTTPBasicAuth

from ..constants import STORAGE_KEY, ApiPath
from ..storage.models import SyncConfig
from .client import RemoteClient

logger = logging.getLogger(__name__)


class WebDavClient(RemoteClient):
    """
    Client for a WebDAV server.

    Usage:
        client = WebDavClient(config)
        client.set("me", '{"chat-next-web-store": {...}}')
        state = client.get("me")
    """

    name = "webdav"

    FOLDER = STORAGE_KEY
    FILE_NAME = f"{STORAGE_KEY}/backup.json"

    # MKCOL answers we accept as "server reachable, folder usable"
    CHECK_OK_STATUSES = (200, 201, 301, 302, 307, 308, 404, 405)

    def __init__(self, config: SyncConfig, timeout: float = 30.0, max_retries: int = 0):
        super().__init__(config, timeout=timeout, max_retries=max_retries)
        self.dav = config.webdav
        self._session.auth = HTTPBasicAuth(self.dav.username, self.dav.password)

    def __repr__(self) -> str:
        return f"WebDavClient(endpoint='{self.dav.endpoint}', username='{self.dav.username}')"

    def path(self, path: str, proxy_method: str = "") -> str:
        """
        Build the URL of a path on the server.

        Through the proxy the real endpoint and, if needed, the real HTTP
        method travel as query parameters.
        """
        path = path.lstrip("/")

        if self.proxy_url:
            params = {"endpoint": self.dav.endpoint}
            if proxy_method:
                params["proxy_method"] = proxy_method
            base = self.proxy_url.rstrip("/")
            return f"{base}{ApiPath.WEBDAV.value}{path}?{urlencode(params)}"

        return f"{self.dav.endpoint.rstrip('/')}/{path}"

    def check(self) -> bool:
        """Try to create the sync folder; any sane answer means reachable."""
        try:
            if self.proxy_url:
                response = self._session.request(
                    "GET",
                    self.path(self.FOLDER, proxy_method="MKCOL"),
                    timeout=self.timeout,
                )
            else:
                response = self._session.request(
                    "MKCOL",
                    self.path(self.FOLDER),
                    timeout=self.timeout,
                )
        except requests.exceptions.RequestException as e:
            logger.error(f"[WebDav] failed to check: {e}")
            return False

        logger.info(f"[WebDav] check {response.status_code} {response.reason}")
        return response.status_code in self.CHECK_OK_STATUSES

    def get(self, key: str) -> str:
        """Download the backup file; a missing file means no data."""
        response = self._request("GET", self.path(self.FILE_NAME), ok_statuses=(404,))
        logger.info(f"[WebDav] get key = {key} {response.status_code} {response.reason}")

        if response.status_code == 404:
            return ""
        return response.content.decode("utf-8")

    def set(self, key: str, value: str) -> None:
        """Upload the backup file."""
        response = self._request(
            "PUT",
            self.path(self.FILE_NAME),
            data=value.encode("utf-8"),
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
        logger.info(f"[WebDav] set key = {key} {response.status_code} {response.reason}")
