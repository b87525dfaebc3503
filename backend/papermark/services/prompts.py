"""
Oracle request construction: instruction text, exam page references and the
strict JSON schemas the responses must follow.

A request is an ordered list of parts:
    {"type": "text", "text": ...}
    {"type": "image_url", "image_url": {"url": ..., "detail": "high"}}
    {"type": "file_url", "file_url": {"url": ..., "mime_type": "application/pdf"}}
"""

from typing import Any, Dict, List

from ..catalog import paper_type_label, subject_label
from ..models import Exam, QuestionResult
from ..utils import GRADE_SCALE, is_pdf_reference

MARK_SCHEME_SEPARATOR = "MARK SCHEME (PDF):"

GRADING_SCHEMA_NAME = "exam_grading_result"
DISPUTE_SCHEMA_NAME = "dispute_result"


def _string_list(description: str) -> Dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


GRADING_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "totalScore": {"type": "integer", "description": "Total marks achieved"},
        "maxScore": {"type": "integer", "description": "Maximum possible marks"},
        "percentage": {"type": "integer", "description": "Percentage score (0-100)"},
        "grade": {
            "type": "string",
            "description": f"Cambridge grade: {', '.join(GRADE_SCALE)}",
        },
        "overallFeedback": {
            "type": "string",
            "description": (
                "Detailed overall feedback in markdown format. Include what the student "
                "did well, areas for improvement, and specific study recommendations."
            ),
        },
        "strengths": _string_list("List of specific strengths demonstrated in the exam"),
        "weaknesses": _string_list("List of specific weaknesses or areas needing improvement"),
        "focusAreas": _string_list("Topics the student should focus on studying next"),
        "drillTopics": _string_list("Specific topics/skills the student should practice repeatedly"),
        "questions": {
            "type": "array",
            "description": "Per-question grading breakdown",
            "items": {
                "type": "object",
                "properties": {
                    "questionNumber": {
                        "type": "string",
                        "description": "Question number (e.g., '1', '2a', '3bi')",
                    },
                    "topic": {"type": "string", "description": "Topic or section this question belongs to"},
                    "score": {"type": "integer", "description": "Marks awarded"},
                    "maxScore": {"type": "integer", "description": "Maximum marks available"},
                    "isCorrect": {"type": "boolean", "description": "Whether the answer is fully correct"},
                    "feedback": {"type": "string", "description": "Specific feedback for this question"},
                    "studentAnswer": {"type": "string", "description": "What the student wrote/selected"},
                    "correctAnswer": {"type": "string", "description": "The correct answer from the mark scheme"},
                },
                "required": [
                    "questionNumber",
                    "topic",
                    "score",
                    "maxScore",
                    "isCorrect",
                    "feedback",
                    "studentAnswer",
                    "correctAnswer",
                ],
                "additionalProperties": False,
            },
        },
    },
    "required": [
        "totalScore",
        "maxScore",
        "percentage",
        "grade",
        "overallFeedback",
        "strengths",
        "weaknesses",
        "focusAreas",
        "drillTopics",
        "questions",
    ],
    "additionalProperties": False,
}

DISPUTE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "newScore": {"type": "integer", "description": "The revised score for this question"},
        "maxScore": {"type": "integer", "description": "Maximum marks for this question"},
        "accepted": {"type": "boolean", "description": "Whether the dispute was accepted (score changed)"},
        "feedback": {"type": "string", "description": "Detailed explanation of the dispute review decision"},
    },
    "required": ["newScore", "maxScore", "accepted", "feedback"],
    "additionalProperties": False,
}


GRADING_INSTRUCTIONS = """You are an expert Cambridge AS and A Level exam grader. You are grading a {subject} {paper} exam.

TASK: Compare the student's exam answers against the official Cambridge mark scheme and grade each question.

INSTRUCTIONS:
1. Carefully examine each page of the student's exam paper
2. Read the mark scheme thoroughly
3. For each question, determine the score based on the mark scheme criteria
4. Provide specific, constructive feedback for each question
5. Identify the topic/section each question belongs to
6. Calculate the total score

For MCQ papers: identify each answer choice and compare against the mark scheme.
For written papers: evaluate working, method marks, accuracy marks, and communication marks as per Cambridge standards.

All scores are whole numbers. The percentage is between 0 and 100. The grade is one of: {grades}.
Return one entry in "questions" for every question you find on the paper.

Return your analysis as JSON matching the schema below."""


DISPUTE_INSTRUCTIONS = """You are an expert Cambridge AS and A Level exam grader reviewing a DISPUTE on a specific question.

The student is disputing the grade for Question {question_number} in a {subject} {paper} exam.

ORIGINAL GRADING:
- Score: {score}/{max_score}
- Student's answer (as read): {student_answer}
- Correct answer: {correct_answer}
- Original feedback: {feedback}

STUDENT'S DISPUTE REASON:
"{reason}"

INSTRUCTIONS:
1. Re-examine the student's exam paper for this specific question
2. Re-read the mark scheme for this question
3. Consider the student's dispute reason carefully
4. Determine if the original grading was fair or if the score should be adjusted
5. Be fair: if the student has a valid point (e.g., alternative valid method, misread handwriting), adjust the score
6. If the original grading was correct, keep the same score but explain why

Return JSON matching the schema below."""


def text_part(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def file_reference(url: str) -> Dict[str, Any]:
    """PDFs go in as document references, everything else as a high-detail image."""
    if is_pdf_reference(url):
        return {"type": "file_url", "file_url": {"url": url, "mime_type": "application/pdf"}}
    return {"type": "image_url", "image_url": {"url": url, "detail": "high"}}


def exam_reference_parts(exam: Exam) -> List[Dict[str, Any]]:
    """Exam pages in upload order, then the mark scheme."""
    parts = [file_reference(url) for url in exam.exam_file_urls]
    parts.append(text_part(MARK_SCHEME_SEPARATOR))
    parts.append({
        "type": "file_url",
        "file_url": {"url": exam.mark_scheme_url, "mime_type": "application/pdf"},
    })
    return parts


def build_grading_parts(exam: Exam) -> List[Dict[str, Any]]:
    instructions = GRADING_INSTRUCTIONS.format(
        subject=subject_label(exam.subject),
        paper=paper_type_label(exam.paper_type),
        grades=", ".join(GRADE_SCALE),
    )
    return [text_part(instructions)] + exam_reference_parts(exam)


def build_dispute_parts(exam: Exam, question: QuestionResult, reason: str) -> List[Dict[str, Any]]:
    instructions = DISPUTE_INSTRUCTIONS.format(
        question_number=question.question_number,
        subject=subject_label(exam.subject),
        paper=paper_type_label(exam.paper_type),
        score=question.score,
        max_score=question.max_score,
        student_answer=question.student_answer or "",
        correct_answer=question.correct_answer or "",
        feedback=question.feedback or "",
        reason=reason,
    )
    return [text_part(instructions)] + exam_reference_parts(exam)
