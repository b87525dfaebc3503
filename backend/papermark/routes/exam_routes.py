"""
Exam routes.

Endpoints:
- POST /api/exams
- GET /api/exams
- GET /api/exams/{exam_id}
- POST /api/exams/{exam_id}/grade
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from ..container import Services
from ..errors import PaperMarkError
from ..models import ExamCreate, User
from .deps import get_current_user, get_services, http_error


def create_exam_routes() -> APIRouter:
    """Create exam routes."""

    router = APIRouter(prefix="/api/exams", tags=["exams"])

    @router.post("")
    async def create_exam(
        exam: ExamCreate,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """Upload exam pages and mark scheme, create the exam record."""
        try:
            exam_id = await services.exams.submit(user.id, exam)
            return {"exam_id": exam_id}
        except HTTPException:
            raise
        except PaperMarkError as e:
            raise http_error(e)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("")
    async def list_exams(
        limit: int = Query(50, ge=1, le=100),
        offset: int = Query(0, ge=0),
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """List the user's exams, newest first."""
        try:
            exams = await services.exams.list(user.id, limit=limit, offset=offset)
            return [exam.model_dump() for exam in exams]
        except PaperMarkError as e:
            raise http_error(e)

    @router.get("/{exam_id}")
    async def get_exam(
        exam_id: int,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """Get exam details."""
        try:
            exam = await services.exams.get(exam_id, user.id)
            return exam.model_dump()
        except PaperMarkError as e:
            raise http_error(e)

    @router.post("/{exam_id}/grade")
    async def grade_exam(
        exam_id: int,
        user: User = Depends(get_current_user),
        services: Services = Depends(get_services)
    ):
        """
        Grade the exam with the AI oracle.

        Returns the existing result when the exam is already graded.
        """
        try:
            exam_result_id = await services.grading.grade(exam_id, user.id)
            return {"exam_result_id": exam_result_id}
        except PaperMarkError as e:
            raise http_error(e)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
