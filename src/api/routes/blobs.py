"""
Blob retrieval endpoint.

GET /api/GetBlob?blobUri=<id> returns the image stored at
<container>/<id>.jpg. Access is anonymous; the gateway itself
authenticates to storage with its delegated identity.

Status mapping:
- 200: object bytes, Content-Type image/jpeg
- 400: blobUri missing, blank or containing disallowed characters
- 502: credential or storage failure, error detail in the body

The handler is a plain `def` so FastAPI runs the blocking download in its
threadpool instead of on the event loop.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Query, Response, status
from fastapi.responses import PlainTextResponse

from ...core.retrieval.errors import FetchFailure, InvalidBlobIdError
from ...core.retrieval.locator import BLOB_ID_PARAMETER
from ..dependencies import RetrievalServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/GetBlob",
    status_code=status.HTTP_200_OK,
    summary="Download an image",
    description="Fetch a single image from the fixed container by its object id.",
    response_class=Response,
    responses={
        200: {"content": {"image/jpeg": {}}, "description": "Raw image bytes"},
        400: {"content": {"text/plain": {}}, "description": "Missing or invalid blobUri"},
        502: {"content": {"text/plain": {}}, "description": "Storage or identity failure"},
    },
)
def get_blob(
    service: RetrievalServiceDep,
    blob_uri: Annotated[
        Optional[str],
        Query(alias=BLOB_ID_PARAMETER, description="Object id, letters, digits and !@#$%& only"),
    ] = None,
) -> Response:
    try:
        retrieved = service.retrieve(blob_uri)
    except InvalidBlobIdError as e:
        logger.debug("Rejected blob request", extra={"blob_id": blob_uri})
        return PlainTextResponse(str(e), status_code=status.HTTP_400_BAD_REQUEST)
    except FetchFailure as e:
        # Already logged with the blob id by the service
        return PlainTextResponse(str(e), status_code=status.HTTP_502_BAD_GATEWAY)

    return Response(
        content=retrieved.content.read(),
        media_type=retrieved.content_type,
    )
