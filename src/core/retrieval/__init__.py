"""
Request validation and blob retrieval.

Contains the locator rules, the retrieval service and its errors.
"""

from .errors import FetchFailure, InvalidBlobIdError, RetrievalError
from .locator import (
    BLOB_ID_PARAMETER,
    BLOB_ID_PATTERN,
    ObjectLocator,
    build_locator,
    validate_blob_id,
)
from .service import BlobDownloader, BlobRetrievalService, CredentialSource, RetrievedObject

__all__ = [
    "BLOB_ID_PARAMETER",
    "BLOB_ID_PATTERN",
    "BlobDownloader",
    "BlobRetrievalService",
    "CredentialSource",
    "FetchFailure",
    "InvalidBlobIdError",
    "ObjectLocator",
    "RetrievalError",
    "RetrievedObject",
    "build_locator",
    "validate_blob_id",
]
