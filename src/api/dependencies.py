"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests (app.dependency_overrides)
- Configuration is centralized

The credential provider and storage client are process-wide: lru_cache
builds each once and every request shares it. The retrieval service is
cheap and built per request around those shared pieces.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..core.retrieval.service import BlobRetrievalService
from ..infrastructure.identity.provider import CredentialProvider, create_credential_provider
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared Clients
# ---------------------------------------------------------------------------

@lru_cache()
def get_credential_provider() -> CredentialProvider:
    """
    Provide the process-wide credential provider.

    The identity mode is selected here, once. The credential itself is
    not built until the first request needs it.
    """
    provider = create_credential_provider(get_settings())
    logger.info(
        "Created credential provider",
        extra={"identity_mode": provider.mode.value}
    )
    return provider


@lru_cache()
def get_storage_client() -> StorageClient:
    """
    Provide storage client for blob downloads.

    Returns either the Azure client or the mock client based on settings.
    In mock mode the same in-memory store is shared across requests.
    """
    settings = get_settings()

    if settings.storage_mock_mode:
        logger.info("Created shared mock storage client")
        return create_storage_client(mock_mode=True)

    config = StorageConfig(timeout_seconds=settings.storage_timeout_seconds)
    return create_storage_client(config=config)


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_retrieval_service(
    settings: Annotated[Settings, Depends(get_settings)],
    credential_provider: Annotated[CredentialProvider, Depends(get_credential_provider)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> BlobRetrievalService:
    """Provide the retrieval service wired to the shared clients."""
    return BlobRetrievalService(
        credential_source=credential_provider,
        storage=storage,
        account_url=settings.storage_account_endpoint,
        container_name=settings.storage_container_name,
        extension=settings.blob_extension,
        content_type=settings.blob_content_type,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_settings)]
CredentialProviderDep = Annotated[CredentialProvider, Depends(get_credential_provider)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
RetrievalServiceDep = Annotated[BlobRetrievalService, Depends(get_retrieval_service)]
