"""
Grading orchestrator - drives an exam through pending -> grading ->
completed/failed.

FLOW:
1. Load the exam (owner scoped)
2. Completed with a stored result -> return that result, no oracle call
3. Claim the exam for grading (compare-and-set on the status that was read)
4. Build the request: instructions, exam pages, mark scheme
5. Call the oracle and parse its answer against the strict schema
6. Persist the exam result and its question results, mark completed
Any failure after the claim removes what was written and marks the exam failed.
"""

import logging
from typing import Optional

from ..db.repositories import ExamRepository, ExamResultRepository, QuestionResultRepository
from ..errors import ConflictError, InternalError, NotFoundError, PaperMarkError
from ..models import Exam, GradingPayload
from .oracle import parse_oracle_response
from .prompts import GRADING_SCHEMA, GRADING_SCHEMA_NAME, build_grading_parts

logger = logging.getLogger(__name__)


class GradingService:
    """Runs one grading attempt for an exam against the oracle."""

    def __init__(
        self,
        exams: ExamRepository,
        results: ExamResultRepository,
        questions: QuestionResultRepository,
        oracle
    ):
        self.exams = exams
        self.results = results
        self.questions = questions
        self.oracle = oracle

    async def grade(self, exam_id: int, owner_id: int) -> int:
        """
        Grade an exam and return the exam result id.

        Safe to call again on a completed exam: the existing result id is
        returned and nothing is re-graded.

        Raises:
            NotFoundError: Exam missing or not owned by the caller
            ConflictError: Another grading attempt holds the exam
            UpstreamError: Oracle failure or malformed oracle output
            InternalError: Persistence failure
        """
        exam = await self.exams.get(exam_id, owner_id)
        if not exam:
            raise NotFoundError("Exam not found")

        if exam.status == "completed":
            existing = await self.results.get_by_exam(exam.id, owner_id)
            if existing:
                logger.info(f"📦 Exam {exam.id} already graded, result {existing.id}")
                return existing.id

        if not await self.exams.claim_for_grading(exam.id, owner_id, exam.status):
            # Status moved on since the read: another attempt may have finished
            current = await self.exams.get(exam.id, owner_id)
            if current and current.status == "completed":
                existing = await self.results.get_by_exam(exam.id, owner_id)
                if existing:
                    logger.info(f"📦 Exam {exam.id} graded concurrently, result {existing.id}")
                    return existing.id
            raise ConflictError("Grading is already in progress for this exam")

        result_id: Optional[int] = None
        try:
            await self._discard_stale(exam.id, owner_id)
            payload = await self._run_oracle(exam)
            result_id = await self._persist(exam, owner_id, payload)
            await self.exams.set_status(exam.id, "completed")
        except Exception as e:
            logger.error(f"❌ Grading failed for exam {exam.id}: {e}", exc_info=True)
            await self._rollback(exam.id, result_id)
            await self.exams.set_status(exam.id, "failed")
            if isinstance(e, PaperMarkError):
                raise
            raise InternalError(str(e) or "AI grading failed. Please try again.") from e

        logger.info(f"✅ Exam {exam.id} graded: result {result_id}")
        return result_id

    async def _discard_stale(self, exam_id: int, owner_id: int):
        """Leftovers from an attempt that was interrupted before it could clean up."""
        stale = await self.results.get_by_exam(exam_id, owner_id)
        if stale:
            logger.warning(f"Discarding stale result {stale.id} for exam {exam_id}")
            await self.questions.delete_by_exam(exam_id, owner_id)
            await self.results.delete_by_exam(exam_id, owner_id)

    async def _run_oracle(self, exam: Exam) -> GradingPayload:
        parts = build_grading_parts(exam)
        text = await self.oracle.invoke(parts, GRADING_SCHEMA_NAME, GRADING_SCHEMA)
        return parse_oracle_response(text, GradingPayload)

    async def _persist(self, exam: Exam, owner_id: int, payload: GradingPayload) -> int:
        result_id = await self.results.create(
            exam.id,
            owner_id,
            total_score=payload.total_score,
            max_score=payload.max_score,
            percentage=payload.percentage,
            grade=payload.grade,
            overall_feedback=payload.overall_feedback,
            strengths=payload.strengths,
            weaknesses=payload.weaknesses,
            focus_areas=payload.focus_areas,
            drill_topics=payload.drill_topics,
            analysis_data=payload.model_dump(by_alias=True)
        )
        try:
            await self.questions.create_many(
                result_id,
                exam.id,
                owner_id,
                [
                    {
                        "question_number": q.question_number,
                        "topic": q.topic,
                        "score": q.score,
                        "max_score": q.max_score,
                        "is_correct": q.is_correct,
                        "feedback": q.feedback,
                        "student_answer": q.student_answer,
                        "correct_answer": q.correct_answer,
                    }
                    for q in payload.questions
                ]
            )
        except Exception:
            await self._rollback(exam.id, result_id)
            raise
        return result_id

    async def _rollback(self, exam_id: int, result_id: Optional[int]):
        """Compensate a partially written attempt."""
        if result_id is None:
            return
        logger.warning(f"Rolling back result {result_id} of exam {exam_id}")
        try:
            await self.questions.delete_by_result(result_id)
            await self.results.delete(result_id)
        except PaperMarkError as e:
            logger.error(f"Rollback of result {result_id} failed: {e.message}")
