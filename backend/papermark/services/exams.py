"""
Exam record manager - creates, reads and lists exams and moves their status.
"""

import logging
from typing import List, Optional

from ..catalog import is_valid_combination
from ..db.repositories import ExamRepository
from ..errors import NotFoundError, ValidationError
from ..models import Exam, ExamCreate
from .intake import EXAM_NAMESPACE, MARK_SCHEME_NAMESPACE, FileIntakeService

logger = logging.getLogger(__name__)


class ExamService:
    """Exam metadata and status transitions, always scoped to the owner."""

    def __init__(self, exams: ExamRepository, intake: FileIntakeService):
        self.exams = exams
        self.intake = intake

    @staticmethod
    def validate_paper_type(subject: str, paper_type: str):
        if not is_valid_combination(subject, paper_type):
            raise ValidationError(
                f'Invalid paper type "{paper_type}" for subject "{subject}"'
            )

    async def create(
        self,
        owner_id: int,
        subject: str,
        paper_type: str,
        exam_file_urls: List[str],
        mark_scheme_url: str,
        paper_code: Optional[str] = None,
        session_label: Optional[str] = None,
        year: Optional[int] = None
    ) -> int:
        """Create an exam in the "pending" state. Returns the exam id."""
        self.validate_paper_type(subject, paper_type)
        if not exam_file_urls:
            raise ValidationError("At least one exam file is required")

        exam_id = await self.exams.create(
            owner_id,
            subject=subject,
            paper_type=paper_type,
            paper_code=paper_code or None,
            session_label=session_label or None,
            year=year or None,
            exam_file_urls=list(exam_file_urls),
            mark_scheme_url=mark_scheme_url
        )
        logger.info(f"📝 Exam {exam_id} created for user {owner_id} ({subject}/{paper_type})")
        return exam_id

    async def submit(self, owner_id: int, upload: ExamCreate) -> int:
        """
        Store the uploaded files and create the exam.

        The subject/paper combination is checked before anything is stored.
        """
        self.validate_paper_type(upload.subject, upload.paper_type)
        if not upload.exam_files:
            raise ValidationError("At least one exam file is required")

        exam_file_urls = []
        for file in upload.exam_files:
            exam_file_urls.append(await self.intake.store(owner_id, file, EXAM_NAMESPACE))
        mark_scheme_url = await self.intake.store(owner_id, upload.mark_scheme_file, MARK_SCHEME_NAMESPACE)

        return await self.create(
            owner_id,
            subject=upload.subject,
            paper_type=upload.paper_type,
            exam_file_urls=exam_file_urls,
            mark_scheme_url=mark_scheme_url,
            paper_code=upload.paper_code,
            session_label=upload.session_label,
            year=upload.year
        )

    async def get(self, exam_id: int, owner_id: int) -> Exam:
        exam = await self.exams.get(exam_id, owner_id)
        if not exam:
            raise NotFoundError("Exam not found")
        return exam

    async def list(self, owner_id: int, limit: int = 50, offset: int = 0) -> List[Exam]:
        return await self.exams.list(owner_id, limit=limit, offset=offset)

    async def set_status(self, exam_id: int, status: str):
        await self.exams.set_status(exam_id, status)
        logger.info(f"Exam {exam_id} -> {status}")
