"""Read access to exam results and their question breakdown."""

from typing import Any, Dict, List, Optional

from ..db.repositories import ExamRepository, ExamResultRepository, QuestionResultRepository
from ..errors import NotFoundError
from ..models import ExamResultDetail


class ResultService:

    def __init__(
        self,
        exams: ExamRepository,
        results: ExamResultRepository,
        questions: QuestionResultRepository
    ):
        self.exams = exams
        self.results = results
        self.questions = questions

    async def get(self, exam_id: int, owner_id: int) -> ExamResultDetail:
        """Result of one exam with its questions in paper order."""
        exam_result = await self.results.get_by_exam(exam_id, owner_id)
        if not exam_result:
            raise NotFoundError("Result not found")
        questions = await self.questions.list_by_result(exam_result.id, owner_id)
        return ExamResultDetail(**exam_result.model_dump(), questions=questions)

    async def list(self, owner_id: int, subject: Optional[str] = None) -> List[Dict[str, Any]]:
        """All results of the user, newest first, each paired with its exam."""
        exam_results = await self.results.list(owner_id, newest_first=True)
        exams = await self.exams.get_many(owner_id, {r.exam_id for r in exam_results})

        rows = []
        for exam_result in exam_results:
            exam = exams.get(exam_result.exam_id)
            if not exam:
                continue
            if subject and exam.subject != subject:
                continue
            rows.append({"exam_result": exam_result, "exam": exam})
        return rows
