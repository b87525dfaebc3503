"""Public reference data for the upload form."""

from fastapi import APIRouter

from ..catalog import CAMBRIDGE_SUBJECTS, EXAM_SESSIONS, PAPER_TYPES, SUBJECT_PAPER_MAP


def create_catalog_routes() -> APIRouter:
    router = APIRouter(prefix="/api/catalog", tags=["catalog"])

    @router.get("/subjects")
    async def list_subjects():
        return {
            "subjects": CAMBRIDGE_SUBJECTS,
            "paper_types": PAPER_TYPES,
            "subject_paper_map": SUBJECT_PAPER_MAP,
            "exam_sessions": list(EXAM_SESSIONS),
        }

    return router
