"""
FeedHub Backend — Media Route
==============================

What:  Serves objects written by LocalObjectStore at
       GET /media/{category}/{name}.
Who:   <img>/<video> tags pointing at post media and profile pictures.

Security:
    - category must be one of images, videos, gifs
    - the resolved path must stay inside STORAGE_ROOT/<category>
      (LocalObjectStore.path_for rejects ../ and separators)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from feedhub.dependencies import get_object_store
from feedhub.exceptions import NotFoundError
from feedhub.schemas.common import ErrorResponse
from feedhub.services.storage_service import LocalObjectStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["Media"])


@router.get(
    "/{category}/{name}",
    summary="Serve a stored media object",
    responses={
        200: {"description": "Media file"},
        404: {"description": "Object not found", "model": ErrorResponse},
    },
)
async def serve_media(
    category: str,
    name: str,
    store: LocalObjectStore = Depends(get_object_store),
) -> FileResponse:
    path = store.path_for(category, name)
    if path is None or not path.is_file():
        raise NotFoundError(resource="media", resource_id=f"{category}/{name}")

    # media_type is guessed from the file extension
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
