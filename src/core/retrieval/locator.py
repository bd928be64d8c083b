"""
Object id validation and locator construction.

A client supplies only the object id. Everything else in the locator
(host, container, extension) comes from configuration, so a request can
never point the gateway at another container or account.

The id is used verbatim as the object name: no normalization, decoding or
case-folding. The character set below rejects slashes, backslashes, dots,
whitespace and control characters. '%' and '#' are allowed, so the name
must reach the SDK as a name; embedded in a URL they would be decoded or
cut off.
"""

import re
from dataclasses import dataclass

from .errors import InvalidBlobIdError

BLOB_ID_PARAMETER = "blobUri"

# Letters, digits and !@#$%& only.
BLOB_ID_PATTERN = re.compile(r"[A-Za-z0-9!@#$%&]*")

MISSING_BLOB_ID_MESSAGE = (
    f"Request must contain query parameter '{BLOB_ID_PARAMETER}' "
    "designating the name of the file to download"
)
INVALID_BLOB_ID_MESSAGE = (
    f"Query parameter '{BLOB_ID_PARAMETER}' may only contain letters, "
    "digits and the characters !@#$%&"
)


@dataclass(frozen=True)
class ObjectLocator:
    """
    Fully-qualified address of a single object.

    The parts are kept separate so the storage client can hand the blob
    name to the SDK as a name, never as part of a URL it would parse.
    Frozen because a locator is a value: the same parts always address
    the same object.
    """
    account_url: str
    container_name: str
    blob_id: str
    extension: str

    @property
    def blob_name(self) -> str:
        """Object name within the container."""
        return f"{self.blob_id}{self.extension}"

    @property
    def url(self) -> str:
        """Unescaped address, for logs and in-memory lookups only."""
        return f"{self.account_url}/{self.container_name}/{self.blob_name}"


def validate_blob_id(blob_id: str | None) -> str:
    """
    Check a client-supplied object id and return it unchanged.

    Raises InvalidBlobIdError when the id is absent, empty, whitespace-only
    or contains characters outside the allowed set.
    """
    if blob_id is None or not blob_id.strip():
        raise InvalidBlobIdError(MISSING_BLOB_ID_MESSAGE, blob_id=blob_id)

    # fullmatch so a trailing newline can't slip past "$"
    if BLOB_ID_PATTERN.fullmatch(blob_id) is None:
        raise InvalidBlobIdError(INVALID_BLOB_ID_MESSAGE, blob_id=blob_id)

    return blob_id


def build_locator(
    account_url: str,
    container_name: str,
    blob_id: str,
    extension: str = ".jpg",
) -> ObjectLocator:
    """Build the locator for an already validated object id."""
    return ObjectLocator(
        account_url=account_url.rstrip("/"),
        container_name=container_name,
        blob_id=blob_id,
        extension=extension,
    )
