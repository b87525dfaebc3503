"""
Stored file download.

Public: the URLs returned here are handed to the grading oracle, which
fetches them without a session.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from ..container import Services
from ..errors import PaperMarkError
from .deps import get_services, http_error


def create_file_routes() -> APIRouter:
    router = APIRouter(prefix="/api/files", tags=["files"])

    @router.get("/{key:path}")
    async def download_file(key: str, services: Services = Depends(get_services)):
        try:
            stored = await services.storage.open(key)
        except PaperMarkError as e:
            raise http_error(e)

        if stored is None:
            raise HTTPException(status_code=404, detail="File not found")

        data, content_type = stored
        return Response(content=data, media_type=content_type)

    return router
