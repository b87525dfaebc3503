"""Pydantic models for persisted rows, API payloads and oracle responses."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


ExamStatus = Literal["pending", "grading", "completed", "failed"]
Grade = Literal["A*", "A", "B", "C", "D", "E", "U"]


# ============ USER ============
class User(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: str = "user"  # user or admin
    created_at: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None


class SessionExchange(BaseModel):
    session_id: str


# ============ EXAM ============
class Exam(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: int
    user_id: int
    subject: str
    paper_type: str
    paper_code: Optional[str] = None
    session_label: Optional[str] = None
    year: Optional[int] = None
    exam_file_urls: List[str]
    mark_scheme_url: str
    status: ExamStatus = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UploadedFile(BaseModel):
    """A file sent by the client, base64 encoded."""
    name: str
    data: str
    type: str


class ExamCreate(BaseModel):
    subject: str
    paper_type: str
    paper_code: Optional[str] = None
    session_label: Optional[str] = None
    year: Optional[int] = None
    exam_files: List[UploadedFile]
    mark_scheme_file: UploadedFile


# ============ RESULTS ============
class QuestionResult(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: int
    exam_result_id: int
    exam_id: int
    user_id: int
    question_number: str
    topic: Optional[str] = None
    score: int = 0
    max_score: int = 0
    is_correct: bool = False
    feedback: Optional[str] = None
    student_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    created_at: Optional[datetime] = None


class ExamResult(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: int
    exam_id: int
    user_id: int
    total_score: int
    max_score: int
    percentage: int
    grade: str
    overall_feedback: Optional[str] = None
    strengths: List[str] = []
    weaknesses: List[str] = []
    focus_areas: List[str] = []
    drill_topics: List[str] = []
    analysis_data: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExamResultDetail(ExamResult):
    questions: List[QuestionResult] = []


class DisputeCreate(BaseModel):
    question_result_id: int
    reason: str


class DisputeOutcome(BaseModel):
    accepted: bool
    previous_score: int
    new_score: int
    max_score: int
    feedback: str
    new_total_score: int
    new_max_score: int
    new_percentage: int
    new_grade: str


# ============ ORACLE RESPONSES ============
class _OraclePayload(BaseModel):
    """Strict, camelCase, closed objects: anything else is a schema violation."""
    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        alias_generator=to_camel,
    )


class GradedQuestion(_OraclePayload):
    question_number: str
    topic: str
    score: int
    max_score: int
    is_correct: bool
    feedback: str
    student_answer: str
    correct_answer: str


class GradingPayload(_OraclePayload):
    total_score: int
    max_score: int
    percentage: int = Field(ge=0, le=100)
    grade: Grade
    overall_feedback: str
    strengths: List[str]
    weaknesses: List[str]
    focus_areas: List[str]
    drill_topics: List[str]
    questions: List[GradedQuestion]


class DisputeVerdict(_OraclePayload):
    new_score: int
    max_score: int
    accepted: bool
    feedback: str


# ============ PROGRESS ============
class SubjectProgress(BaseModel):
    subject: str
    paper_type: str
    avg_percentage: float
    total_exams: int
    latest_percentage: Optional[int] = None


class TrendPoint(BaseModel):
    exam_id: int
    subject: str
    paper_type: str
    session_label: Optional[str] = None
    percentage: int
    total_score: int
    max_score: int
    grade: str
    created_at: Optional[datetime] = None


class TopicPerformance(BaseModel):
    topic: Optional[str] = None
    avg_score: Optional[float] = None
    total_questions: int
    correct_count: int


__all__ = [
    "ExamStatus",
    "Grade",
    "User",
    "SessionExchange",
    "Exam",
    "UploadedFile",
    "ExamCreate",
    "QuestionResult",
    "ExamResult",
    "ExamResultDetail",
    "DisputeCreate",
    "DisputeOutcome",
    "GradedQuestion",
    "GradingPayload",
    "DisputeVerdict",
    "SubjectProgress",
    "TrendPoint",
    "TopicPerformance",
]
