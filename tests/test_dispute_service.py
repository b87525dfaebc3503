import pytest

from conftest import dispute_response, grading_response, question
from papermark.errors import NotFoundError, UpstreamError, ValidationError
from papermark.services.prompts import DISPUTE_SCHEMA_NAME


@pytest.fixture
async def graded(services, oracle, user, exam_id):
    """Exam graded 5/5 + 5/5 (10/10, A*). Returns the question rows."""
    oracle.queue(grading_response([
        question("1", "Algebra", 5, 5),
        question("2", "Algebra", 5, 5),
    ]))
    await services.grading.grade(exam_id, user.id)
    return (await services.results.get(exam_id, user.id)).questions


async def test_dispute_recomputes_totals(services, oracle, user, exam_id, graded):
    oracle.queue(dispute_response(3, 5, accepted=True, feedback="Method mark only."))

    outcome = await services.disputes.dispute(exam_id, graded[1].id, "I used a valid method", user.id)

    assert outcome.accepted is True
    assert outcome.previous_score == 5
    assert outcome.new_score == 3
    assert outcome.new_total_score == 8
    assert outcome.new_max_score == 10
    assert outcome.new_percentage == 80
    assert outcome.new_grade == "A"

    detail = await services.results.get(exam_id, user.id)
    assert detail.total_score == 8
    assert detail.percentage == 80
    assert detail.grade == "A"
    disputed = detail.questions[1]
    assert disputed.score == 3
    assert disputed.is_correct is False
    assert disputed.feedback == "Method mark only."

    exam = await services.exams.get(exam_id, user.id)
    assert exam.status == "completed"


async def test_rejected_dispute_still_applies_score(services, oracle, user, exam_id, graded):
    oracle.queue(dispute_response(5, 5, accepted=False, feedback="Original mark stands."))

    outcome = await services.disputes.dispute(exam_id, graded[0].id, "Please re-check", user.id)

    assert outcome.accepted is False
    assert outcome.new_total_score == 10
    assert outcome.new_grade == "A*"


async def test_dispute_request_carries_question_and_reason(services, oracle, user, exam_id, graded):
    oracle.queue(dispute_response(4, 5))

    await services.disputes.dispute(exam_id, graded[0].id, "  My answer is equivalent  ", user.id)

    call = oracle.calls[-1]
    assert call["schema_name"] == DISPUTE_SCHEMA_NAME
    instructions = call["parts"][0]["text"]
    assert "Question 1" in instructions
    assert '"My answer is equivalent"' in instructions
    assert "Mathematics Paper 1" in instructions


@pytest.mark.parametrize("reason", ["", "   ", "x" * 2001])
async def test_reason_is_validated_before_anything_else(services, oracle, user, reason):
    with pytest.raises(ValidationError):
        await services.disputes.dispute(9999, 9999, reason, user.id)
    assert oracle.calls == []


async def test_reason_at_length_limit_is_accepted(services, oracle, user, exam_id, graded):
    oracle.queue(dispute_response(5, 5, accepted=False))
    await services.disputes.dispute(exam_id, graded[0].id, "x" * 2000, user.id)


async def test_dispute_on_ungraded_exam(services, user, exam_id):
    with pytest.raises(NotFoundError, match="Result not found"):
        await services.disputes.dispute(exam_id, 1, "reason", user.id)


async def test_dispute_by_other_user_is_not_found(services, other_user, exam_id, graded):
    with pytest.raises(NotFoundError):
        await services.disputes.dispute(exam_id, graded[0].id, "reason", other_user.id)


async def test_question_from_another_result_is_not_found(services, oracle, user, exam_id, graded):
    other_exam = await services.exams.create(
        user.id, "physics", "paper2",
        exam_file_urls=["http://testserver/b.jpg"],
        mark_scheme_url="http://testserver/ms2.pdf"
    )
    oracle.queue(grading_response([question("1", "Waves", 2, 4)]))
    await services.grading.grade(other_exam, user.id)

    with pytest.raises(NotFoundError, match="Question not found"):
        await services.disputes.dispute(other_exam, graded[0].id, "reason", user.id)


async def test_bad_verdict_leaves_rows_untouched(services, oracle, user, exam_id, graded):
    oracle.queue('{"newScore": 3}')

    with pytest.raises(UpstreamError):
        await services.disputes.dispute(exam_id, graded[0].id, "reason", user.id)

    detail = await services.results.get(exam_id, user.id)
    assert detail.total_score == 10
    assert detail.questions[0].score == 5
