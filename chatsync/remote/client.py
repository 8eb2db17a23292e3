"""
Base HTTP client shared by the remote sync backends.

Handles session setup, transport retries and error wrapping. Credentials
are never logged.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..storage.models import SyncConfig

logger = logging.getLogger(__name__)


class RemoteAPIError(Exception):
    """Raised when a remote sync backend returns an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteClient(ABC):
    """
    Key/value view of a remote sync backend.

    ``get`` returns an empty string when the backend holds no data.

    Usage:
        with create_sync_client(config.provider, config) as client:
            if client.check():
                client.set("me", payload)
    """

    name = "remote"

    def __init__(
        self,
        config: SyncConfig,
        timeout: float = 30.0,
        max_retries: int = 0,
    ):
        """
        Initialize the client.

        Args:
            config: Sync configuration; the client reads its own sub-config
            timeout: Request timeout in seconds
            max_retries: Transport-level retries for transient failures
        """
        self.config = config
        self.proxy_url = config.effective_proxy_url
        self.timeout = timeout

        self._session = requests.Session()

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "PUT", "POST", "MKCOL"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    @abstractmethod
    def get(self, key: str) -> str:
        """Fetch the stored value, or "" if there is none."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def check(self) -> bool:
        """Check that the backend is reachable with the current credentials."""

    def _request(
        self,
        method: str,
        url: str,
        ok_statuses: Iterable[int] = (),
        **kwargs,
    ) -> requests.Response:
        """
        Send a request and raise on error responses.

        Args:
            method: HTTP method
            url: Absolute URL
            ok_statuses: Error statuses the caller handles itself
            **kwargs: Passed to ``requests.Session.request``

        Returns:
            The response

        Raises:
            RemoteAPIError: On network failure or unexpected status
        """
        try:
            response = self._session.request(
                method=method,
                url=url,
                timeout=self.timeout,
                **kwargs,
            )
            logger.debug(f"[{self.name}] {method} {url} -> {response.status_code}")

            if response.status_code not in ok_statuses:
                response.raise_for_status()
            return response

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            error_msg = f"{self.name} error: {e}"
            logger.error(error_msg)
            raise RemoteAPIError(error_msg, status_code=status_code) from e

        except requests.exceptions.RequestException as e:
            error_msg = f"{self.name} request failed: {e}"
            logger.error(error_msg)
            raise RemoteAPIError(error_msg) from e

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
