import base64

import pytest

from papermark.errors import NotFoundError, UpstreamError, ValidationError
from papermark.models import ExamCreate, UploadedFile


def upload(name, content=b"data", type_="image/jpeg"):
    return UploadedFile(name=name, data=base64.b64encode(content).decode(), type=type_)


async def test_create_starts_pending(services, user, exam_id):
    exam = await services.exams.get(exam_id, user.id)

    assert exam.status == "pending"
    assert exam.subject == "math"
    assert exam.paper_type == "paper1"
    assert exam.paper_code == "9709/12"
    assert len(exam.exam_file_urls) == 2
    assert exam.mark_scheme_url.endswith("ms.pdf")


async def test_create_rejects_paper_type_not_offered_for_subject(services, user):
    with pytest.raises(ValidationError):
        await services.exams.create(
            user.id, "math", "mcq",
            exam_file_urls=["http://testserver/a.jpg"],
            mark_scheme_url="http://testserver/ms.pdf"
        )


async def test_create_requires_an_exam_file(services, user):
    with pytest.raises(ValidationError):
        await services.exams.create(
            user.id, "physics", "mcq",
            exam_file_urls=[],
            mark_scheme_url="http://testserver/ms.pdf"
        )


async def test_exam_of_another_user_is_not_found(services, other_user, exam_id):
    with pytest.raises(NotFoundError):
        await services.exams.get(exam_id, other_user.id)


async def test_submit_stores_files_under_user_namespace(services, storage, user):
    exam_id = await services.exams.submit(user.id, ExamCreate(
        subject="chemistry",
        paper_type="paper2",
        exam_files=[upload("p1.jpg", b"one"), upload("p2.jpg", b"two")],
        mark_scheme_file=upload("ms.pdf", b"%PDF", "application/pdf")
    ))

    exam = await services.exams.get(exam_id, user.id)
    keys = sorted(storage.files)
    assert len(keys) == 3
    assert all(key.startswith(("exams/", "markschemes/")) for key in keys)
    assert [key.split("/")[1] for key in keys] == [str(user.id)] * 3
    assert exam.exam_file_urls[0].startswith("http://testserver/api/files/exams/")
    assert exam.exam_file_urls[0].endswith("-p1.jpg")
    assert exam.mark_scheme_url.endswith("-ms.pdf")
    stored_key = exam.mark_scheme_url.split("/api/files/", 1)[1]
    assert storage.files[stored_key] == (b"%PDF", "application/pdf")


async def test_submit_validates_before_storing(services, storage, user):
    with pytest.raises(ValidationError):
        await services.exams.submit(user.id, ExamCreate(
            subject="physics",
            paper_type="paper6",
            exam_files=[upload("p1.jpg")],
            mark_scheme_file=upload("ms.pdf")
        ))
    assert storage.files == {}


async def test_submit_rejects_bad_base64(services, user):
    bad = UploadedFile(name="p1.jpg", data="%%%not-base64%%%", type="image/jpeg")
    with pytest.raises(ValidationError):
        await services.exams.submit(user.id, ExamCreate(
            subject="math",
            paper_type="paper3",
            exam_files=[bad],
            mark_scheme_file=upload("ms.pdf")
        ))


async def test_storage_failure_is_upstream_error(services, storage, user):
    async def broken_put(key, data, content_type):
        raise OSError("disk gone")

    storage.put = broken_put
    with pytest.raises(UpstreamError):
        await services.exams.submit(user.id, ExamCreate(
            subject="math",
            paper_type="paper3",
            exam_files=[upload("p1.jpg")],
            mark_scheme_file=upload("ms.pdf")
        ))


async def test_list_is_newest_first_and_paginated(services, user):
    ids = []
    for _ in range(3):
        ids.append(await services.exams.create(
            user.id, "math", "paper2",
            exam_file_urls=["http://testserver/a.jpg"],
            mark_scheme_url="http://testserver/ms.pdf"
        ))

    listed = await services.exams.list(user.id)
    assert [e.id for e in listed] == list(reversed(ids))

    page = await services.exams.list(user.id, limit=1, offset=1)
    assert [e.id for e in page] == [ids[1]]


async def test_list_only_shows_own_exams(services, other_user, exam_id):
    assert await services.exams.list(other_user.id) == []
