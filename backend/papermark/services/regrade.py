"""
Regrade orchestrator - throws away an exam's results and puts it back in
"pending". Grading itself is a separate call.
"""

import logging
from typing import Any, Dict

from ..db.repositories import ExamRepository, ExamResultRepository, QuestionResultRepository
from ..errors import NotFoundError

logger = logging.getLogger(__name__)


class RegradeService:

    def __init__(
        self,
        exams: ExamRepository,
        results: ExamResultRepository,
        questions: QuestionResultRepository
    ):
        self.exams = exams
        self.results = results
        self.questions = questions

    async def regrade(self, exam_id: int, owner_id: int) -> Dict[str, Any]:
        exam = await self.exams.get(exam_id, owner_id)
        if not exam:
            raise NotFoundError("Exam not found")

        deleted_questions = await self.questions.delete_by_exam(exam.id, owner_id)
        deleted_results = await self.results.delete_by_exam(exam.id, owner_id)
        await self.exams.set_status(exam.id, "pending")

        logger.info(
            f"🔄 Exam {exam.id} reset to pending "
            f"({deleted_results} result, {deleted_questions} questions removed)"
        )
        return {"success": True, "exam_id": exam.id}
