"""
Progress aggregator - read-only rollups over the user's stored results.

Nothing is cached; every call reads the current rows.
"""

from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from ..db.repositories import ExamRepository, ExamResultRepository, QuestionResultRepository
from ..models import SubjectProgress, TopicPerformance, TrendPoint


class ProgressService:

    def __init__(
        self,
        exams: ExamRepository,
        results: ExamResultRepository,
        questions: QuestionResultRepository
    ):
        self.exams = exams
        self.results = results
        self.questions = questions

    async def _results_with_exams(self, owner_id: int):
        """(result, exam) pairs, oldest first."""
        exam_results = await self.results.list(owner_id, newest_first=False)
        exams = await self.exams.get_many(owner_id, {r.exam_id for r in exam_results})
        return [(r, exams[r.exam_id]) for r in exam_results if r.exam_id in exams]

    async def summary(self, owner_id: int) -> List[SubjectProgress]:
        """Average, count and latest percentage per (subject, paper type)."""
        groups: Dict[Tuple[str, str], List[int]] = OrderedDict()
        for exam_result, exam in await self._results_with_exams(owner_id):
            groups.setdefault((exam.subject, exam.paper_type), []).append(exam_result.percentage)

        return [
            SubjectProgress(
                subject=subject,
                paper_type=paper_type,
                avg_percentage=round(sum(percentages) / len(percentages), 2),
                total_exams=len(percentages),
                latest_percentage=percentages[-1]
            )
            for (subject, paper_type), percentages in groups.items()
        ]

    async def trend(
        self,
        owner_id: int,
        subject: Optional[str] = None,
        paper_type: Optional[str] = None
    ) -> List[TrendPoint]:
        """Chronological scores, optionally narrowed to a subject and paper type."""
        points = []
        for exam_result, exam in await self._results_with_exams(owner_id):
            if subject and exam.subject != subject:
                continue
            if paper_type and exam.paper_type != paper_type:
                continue
            points.append(TrendPoint(
                exam_id=exam.id,
                subject=exam.subject,
                paper_type=exam.paper_type,
                session_label=exam.session_label,
                percentage=exam_result.percentage,
                total_score=exam_result.total_score,
                max_score=exam_result.max_score,
                grade=exam_result.grade,
                created_at=exam_result.created_at
            ))
        return points

    async def topics(self, owner_id: int, subject: Optional[str] = None) -> List[TopicPerformance]:
        """
        Per-topic performance across all graded questions.

        avg_score is the mean of each question's score as a percentage of its
        maximum. Questions worth 0 marks count towards total_questions but not
        towards the average.
        """
        exam_ids = None
        if subject:
            exam_ids = [e.id for e in (await self._exams_for_subject(owner_id, subject))]

        question_rows = await self.questions.list_for_user(owner_id, exam_ids=exam_ids)

        groups: Dict[Optional[str], Dict] = OrderedDict()
        for q in question_rows:
            group = groups.setdefault(q.topic, {"ratios": [], "total": 0, "correct": 0})
            group["total"] += 1
            if q.max_score:
                group["ratios"].append(q.score / q.max_score * 100)
            if q.score == q.max_score:
                group["correct"] += 1

        return [
            TopicPerformance(
                topic=topic,
                avg_score=round(sum(g["ratios"]) / len(g["ratios"]), 2) if g["ratios"] else None,
                total_questions=g["total"],
                correct_count=g["correct"]
            )
            for topic, g in groups.items()
        ]

    async def _exams_for_subject(self, owner_id: int, subject: str):
        pairs = await self._results_with_exams(owner_id)
        return [exam for _, exam in pairs if exam.subject == subject]
