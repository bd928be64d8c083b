"""
Object storage client for image retrieval.

Reads blobs from Azure Blob Storage with a token credential (no account
keys or SAS tokens). The only operation the gateway needs is "download the
object named by this locator into a writable sink".

Mock mode stores objects in memory, enabling API testing without
provisioning a storage account.
"""

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Protocol

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobClient

from ...core.retrieval.locator import ObjectLocator

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


class BlobNotFoundError(StorageError):
    """Raised when the requested blob does not exist."""
    pass


@dataclass
class StorageConfig:
    """Configuration for Blob Storage downloads."""
    timeout_seconds: int = 30


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and the retrieval
    service doesn't depend on the Azure SDK.
    """

    def download_to(self, locator: ObjectLocator, credential: Any, sink: BinaryIO) -> int:
        """Stream the blob named by `locator` into `sink`. Returns bytes written."""
        ...


class AzureBlobStorageClient:
    """
    Azure Blob Storage client.

    A BlobClient is built per download from the account URL, container
    name and blob name as separate arguments. The SDK quotes the blob name
    itself, so '%' and '#' in an id stay literal characters of the name.
    Never use BlobClient.from_blob_url here: it percent-decodes the path
    and drops everything after '#'.

    The credential is the shared token credential; azure-identity caches
    tokens internally.
    """

    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        self._config = config or StorageConfig()

        logger.info(
            "Initialized Azure Blob storage client",
            extra={"timeout_seconds": self._config.timeout_seconds}
        )

    def get_blob_client(self, locator: ObjectLocator, credential: Any) -> BlobClient:
        """Build the SDK client for one blob. Makes no network calls."""
        return BlobClient(
            account_url=locator.account_url,
            container_name=locator.container_name,
            blob_name=locator.blob_name,
            credential=credential,
        )

    def download_to(self, locator: ObjectLocator, credential: Any, sink: BinaryIO) -> int:
        """
        Download a blob into `sink`.

        Blocks until the whole blob is written or the download fails.
        Raises BlobNotFoundError for a missing blob and StorageError for
        anything else (access denied, network, malformed account URL).
        """
        try:
            blob_client = self.get_blob_client(locator, credential)
            with blob_client:
                downloader = blob_client.download_blob(timeout=self._config.timeout_seconds)
                size = downloader.readinto(sink)

            logger.debug(
                "Downloaded blob",
                extra={"url": locator.url, "size_bytes": size}
            )

            return size

        except ResourceNotFoundError as e:
            logger.warning("Blob not found", extra={"url": locator.url})
            raise BlobNotFoundError(f"Blob not found: {locator.url}") from e
        except (AzureError, ValueError) as e:
            logger.error(
                "Failed to download blob",
                extra={"url": locator.url, "error": str(e)}
            )
            raise StorageError(f"Download failed: {e}") from e


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    Objects are stored in a dictionary keyed by the unescaped locator URL
    (account/container/name), which is never parsed. Every download is
    recorded in `download_log` so callers can check that nothing was
    served from a cache.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, objects: Optional[dict[str, bytes]] = None) -> None:
        self._objects: dict[str, bytes] = dict(objects or {})
        self.download_log: list[str] = []
        logger.info("Initialized mock storage client (in-memory)")

    def put_object(self, url: str, data: bytes) -> None:
        """Store an object in memory."""
        self._objects[url] = data

    def download_to(self, locator: ObjectLocator, credential: Any, sink: BinaryIO) -> int:
        """Write an object from memory into `sink`."""
        url = locator.url
        self.download_log.append(url)

        if url not in self._objects:
            raise BlobNotFoundError(f"Blob not found: {url}")

        data = self._objects[url]
        sink.write(data)

        logger.debug(
            "Served blob from mock storage",
            extra={"url": url, "size_bytes": len(data)}
        )

        return len(data)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Download settings (defaults used if omitted)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (Azure or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    return AzureBlobStorageClient(config)
