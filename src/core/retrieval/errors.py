"""
Errors raised by the retrieval pipeline.

The route layer maps these to HTTP status codes:
- InvalidBlobIdError -> 400
- FetchFailure -> 502
"""


class RetrievalError(Exception):
    """Base class for retrieval pipeline errors."""
    pass


class InvalidBlobIdError(RetrievalError):
    """Raised when the requested object id is missing or malformed."""

    def __init__(self, message: str, blob_id: str | None = None) -> None:
        super().__init__(message)
        self.blob_id = blob_id


class FetchFailure(RetrievalError):
    """
    Raised when a validated object could not be fetched.

    Covers authentication failures as well as storage errors
    (not found, access denied, network). The original exception is kept
    as __cause__ and its text as `detail`.
    """

    def __init__(self, blob_id: str, detail: str) -> None:
        super().__init__(f"Failed to retrieve '{blob_id}': {detail}")
        self.blob_id = blob_id
        self.detail = detail
