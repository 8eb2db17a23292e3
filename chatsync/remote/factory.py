"""Provider-to-client selection."""

from ..storage.models import ProviderType, SyncConfig
from .client import RemoteClient
from .upstash import UpstashClient
from .webdav import WebDavClient

CLIENTS: dict[ProviderType, type[RemoteClient]] = {
    ProviderType.WEBDAV: WebDavClient,
    ProviderType.UPSTASH: UpstashClient,
}


def create_sync_client(
    provider: ProviderType,
    config: SyncConfig,
    timeout: float = 30.0,
    max_retries: int = 0,
) -> RemoteClient:
    """
    Build a fresh client for a provider.

    Args:
        provider: Which backend to talk to
        config: Current sync configuration
        timeout: Request timeout in seconds
        max_retries: Transport-level retries

    Returns:
        A new, unshared client
    """
    client_cls = CLIENTS[ProviderType(provider)]
    return client_cls(config, timeout=timeout, max_retries=max_retries)
