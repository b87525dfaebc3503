"""
Progress routes.

Endpoints:
- GET /api/progress/summary
- GET /api/progress/trend
- GET /api/progress/topics
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..container import Services
from ..errors import PaperMarkError
from ..models import User
from .deps import get_current_user, get_services, http_error


def create_progress_routes() -> APIRouter:
    """Create progress routes."""

    router = APIRouter(prefix="/api/progress", tags=["progress"])

    @router.get("/summary")
    async def progress_summary(
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        try:
            return [row.model_dump() for row in await services.progress.summary(user.id)]
        except PaperMarkError as e:
            raise http_error(e)

    @router.get("/trend")
    async def progress_trend(
        subject: Optional[str] = None,
        paper_type: Optional[str] = None,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        try:
            points = await services.progress.trend(user.id, subject=subject, paper_type=paper_type)
            return [point.model_dump() for point in points]
        except PaperMarkError as e:
            raise http_error(e)

    @router.get("/topics")
    async def progress_topics(
        subject: Optional[str] = None,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        try:
            return [row.model_dump() for row in await services.progress.topics(user.id, subject=subject)]
        except PaperMarkError as e:
            raise http_error(e)

    return router
