"""
Dispute orchestrator - asks the oracle to re-evaluate one question with the
student's justification, then rolls the exam totals forward.
"""

import logging

from ..db.repositories import ExamRepository, ExamResultRepository, QuestionResultRepository
from ..errors import NotFoundError, ValidationError
from ..models import DisputeOutcome, DisputeVerdict
from ..utils import format_percentage, grade_from_percentage
from .oracle import parse_oracle_response
from .prompts import DISPUTE_SCHEMA, DISPUTE_SCHEMA_NAME, build_dispute_parts

logger = logging.getLogger(__name__)


class DisputeService:
    """Re-evaluates a single question result."""

    def __init__(
        self,
        exams: ExamRepository,
        results: ExamResultRepository,
        questions: QuestionResultRepository,
        oracle,
        max_reason_length: int = 2000
    ):
        self.exams = exams
        self.results = results
        self.questions = questions
        self.oracle = oracle
        self.max_reason_length = max_reason_length

    def _clean_reason(self, reason: str) -> str:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason for the dispute is required")
        if len(reason) > self.max_reason_length:
            raise ValidationError(
                f"Dispute reason must be at most {self.max_reason_length} characters"
            )
        return reason

    async def dispute(
        self,
        exam_id: int,
        question_result_id: int,
        reason: str,
        owner_id: int
    ) -> DisputeOutcome:
        """
        Re-grade one question and recompute the exam totals.

        Whatever score the oracle returns is applied, accepted or not.
        The exam status is never touched.
        """
        reason = self._clean_reason(reason)

        exam = await self.exams.get(exam_id, owner_id)
        if not exam:
            raise NotFoundError("Exam not found")

        exam_result = await self.results.get_by_exam(exam.id, owner_id)
        if not exam_result:
            raise NotFoundError("Result not found")

        question = await self.questions.get(question_result_id, owner_id)
        if not question or question.exam_result_id != exam_result.id:
            raise NotFoundError("Question not found")

        parts = build_dispute_parts(exam, question, reason)
        text = await self.oracle.invoke(parts, DISPUTE_SCHEMA_NAME, DISPUTE_SCHEMA)
        verdict = parse_oracle_response(text, DisputeVerdict)

        await self.questions.update(
            question.id,
            score=verdict.new_score,
            is_correct=verdict.new_score == verdict.max_score,
            feedback=verdict.feedback
        )

        # Use the verdict for the disputed row rather than reading it back
        all_questions = await self.questions.list_by_result(exam_result.id, owner_id)
        new_total = sum(
            verdict.new_score if q.id == question.id else (q.score or 0)
            for q in all_questions
        )
        total_max = sum(q.max_score or 0 for q in all_questions)
        new_percentage = format_percentage(new_total, total_max)
        new_grade = grade_from_percentage(new_percentage)

        await self.results.update_scores(
            exam_result.id,
            total_score=new_total,
            max_score=total_max,
            percentage=new_percentage,
            grade=new_grade
        )

        logger.info(
            f"⚖️  Dispute on exam {exam.id} Q{question.question_number}: "
            f"{question.score} -> {verdict.new_score} (accepted={verdict.accepted}), "
            f"total {new_total}/{total_max} {new_grade}"
        )

        return DisputeOutcome(
            accepted=verdict.accepted,
            previous_score=question.score,
            new_score=verdict.new_score,
            max_score=verdict.max_score,
            feedback=verdict.feedback,
            new_total_score=new_total,
            new_max_score=total_max,
            new_percentage=new_percentage,
            new_grade=new_grade
        )
