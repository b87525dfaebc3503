from papermark.models import Exam, QuestionResult
from papermark.services.prompts import (
    MARK_SCHEME_SEPARATOR,
    build_dispute_parts,
    build_grading_parts,
    file_reference,
)


def make_exam(**overrides):
    fields = dict(
        id=1,
        user_id=1,
        subject="physics",
        paper_type="mcq",
        exam_file_urls=[
            "http://testserver/api/files/exams/1/p1.jpg",
            "http://testserver/api/files/exams/1/full.pdf",
        ],
        mark_scheme_url="http://testserver/api/files/markschemes/1/ms.pdf",
    )
    fields.update(overrides)
    return Exam(**fields)


def test_grading_parts_order():
    parts = build_grading_parts(make_exam())

    assert [p["type"] for p in parts] == ["text", "image_url", "file_url", "text", "file_url"]
    assert "Physics MCQ exam" in parts[0]["text"]
    assert "A*, A, B, C, D, E, U" in parts[0]["text"]
    assert parts[1]["image_url"] == {"url": "http://testserver/api/files/exams/1/p1.jpg", "detail": "high"}
    assert parts[2]["file_url"]["mime_type"] == "application/pdf"
    assert parts[3]["text"] == MARK_SCHEME_SEPARATOR
    assert parts[4]["file_url"] == {
        "url": "http://testserver/api/files/markschemes/1/ms.pdf",
        "mime_type": "application/pdf",
    }


def test_mark_scheme_is_always_sent_as_document():
    parts = build_grading_parts(make_exam(mark_scheme_url="http://testserver/ms-scan.jpg"))
    assert parts[-1]["type"] == "file_url"
    assert parts[-1]["file_url"]["mime_type"] == "application/pdf"


def test_file_reference_by_extension():
    assert file_reference("http://x/a.PDF")["type"] == "file_url"
    assert file_reference("http://x/a.jpeg")["type"] == "image_url"


def test_dispute_parts_include_original_grading():
    question = QuestionResult(
        id=7,
        exam_result_id=3,
        exam_id=1,
        user_id=1,
        question_number="4b",
        topic="Kinematics",
        score=1,
        max_score=3,
        feedback="Missing units",
        student_answer="v = 12",
        correct_answer="v = 12 m/s",
    )

    parts = build_dispute_parts(make_exam(), question, "Units were on the next line")

    text = parts[0]["text"]
    assert "Question 4b" in text
    assert "Score: 1/3" in text
    assert "v = 12 m/s" in text
    assert "Missing units" in text
    assert '"Units were on the next line"' in text
    assert parts[1:] == build_grading_parts(make_exam())[1:]
