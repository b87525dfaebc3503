"""
Result routes.

Endpoints:
- GET /api/results
- GET /api/results/{exam_id}
- POST /api/results/{exam_id}/dispute
- POST /api/results/{exam_id}/regrade
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..container import Services
from ..errors import PaperMarkError
from ..models import DisputeCreate, User
from .deps import get_current_user, get_services, http_error


def create_result_routes() -> APIRouter:
    """Create result routes."""

    router = APIRouter(prefix="/api/results", tags=["results"])

    @router.get("")
    async def list_results(
        subject: Optional[str] = None,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """All of the user's results with their exams, newest first."""
        try:
            rows = await services.results.list(user.id, subject=subject)
            return [
                {
                    "exam_result": row["exam_result"].model_dump(exclude={"analysis_data"}),
                    "exam": row["exam"].model_dump(),
                }
                for row in rows
            ]
        except PaperMarkError as e:
            raise http_error(e)

    @router.get("/{exam_id}")
    async def get_result(
        exam_id: int,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """Exam result with its question breakdown."""
        try:
            result = await services.results.get(exam_id, user.id)
            return result.model_dump()
        except PaperMarkError as e:
            raise http_error(e)

    @router.post("/{exam_id}/dispute")
    async def dispute_question(
        exam_id: int,
        dispute: DisputeCreate,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """Ask the AI to re-evaluate one question with the student's reasoning."""
        try:
            outcome = await services.disputes.dispute(
                exam_id,
                dispute.question_result_id,
                dispute.reason,
                user.id
            )
            return outcome.model_dump()
        except PaperMarkError as e:
            raise http_error(e)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/{exam_id}/regrade")
    async def regrade_exam(
        exam_id: int,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """Delete the result and reset the exam so it can be graded again."""
        try:
            return await services.regrade.regrade(exam_id, user.id)
        except PaperMarkError as e:
            raise http_error(e)

    return router
