"""
Blob retrieval pipeline.

Each call runs Validate -> Locate -> Authenticate -> Fetch with no retry
and no partial state. Any failure short-circuits with a typed error that
the route layer turns into an HTTP response.

The service holds no per-request state. Object contents are never cached:
two requests for the same id perform two fetches.
"""

import io
import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol

from .errors import FetchFailure
from .locator import ObjectLocator, build_locator, validate_blob_id

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class CredentialSource(Protocol):
    """
    Anything that hands out the process-wide token credential.

    The service never learns which identity mode produced it.
    """

    def get_credential(self) -> Any:
        """Return a token credential usable by the storage client."""
        ...


class BlobDownloader(Protocol):
    """Interface for the object storage backend."""

    def download_to(self, locator: ObjectLocator, credential: Any, sink: BinaryIO) -> int:
        """Stream the object named by `locator` into `sink`. Returns bytes written."""
        ...


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

@dataclass
class RetrievedObject:
    """An object fetched into memory, rewound and ready to emit."""
    locator: ObjectLocator
    content: io.BytesIO
    content_type: str

    @property
    def size_bytes(self) -> int:
        return self.content.getbuffer().nbytes


class BlobRetrievalService:
    """
    Turns an untrusted object id into a fetched object.

    Dependencies are injected so tests can supply a fake credential and
    an in-memory storage backend.
    """

    def __init__(
        self,
        credential_source: CredentialSource,
        storage: BlobDownloader,
        account_url: str,
        container_name: str,
        extension: str = ".jpg",
        content_type: str = "image/jpeg",
    ) -> None:
        self._credential_source = credential_source
        self._storage = storage
        self._account_url = account_url
        self._container_name = container_name
        self._extension = extension
        self._content_type = content_type

    def locate(self, blob_id: str | None) -> ObjectLocator:
        """Validate the id and build its locator. Raises InvalidBlobIdError."""
        return build_locator(
            self._account_url,
            self._container_name,
            validate_blob_id(blob_id),
            self._extension,
        )

    def retrieve(self, blob_id: str | None) -> RetrievedObject:
        """
        Fetch the object named by `blob_id`.

        Raises:
            InvalidBlobIdError: id missing or malformed. Nothing is fetched.
            FetchFailure: credential resolution or download failed.
        """
        locator = self.locate(blob_id)

        buffer = io.BytesIO()
        try:
            credential = self._credential_source.get_credential()
            self._storage.download_to(locator, credential, buffer)
        except Exception as e:
            logger.error(
                "Failure in retrieving blob",
                extra={"blob_id": locator.blob_id, "url": locator.url, "error": str(e)},
                exc_info=e,
            )
            raise FetchFailure(locator.blob_id, str(e)) from e

        buffer.seek(0)

        logger.debug(
            "Retrieved blob",
            extra={"blob_id": locator.blob_id, "size_bytes": buffer.getbuffer().nbytes},
        )

        return RetrievedObject(
            locator=locator,
            content=buffer,
            content_type=self._content_type,
        )
