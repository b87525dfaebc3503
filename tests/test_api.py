"""End-to-end checks of the HTTP surface over the in-memory stack."""

import base64

import httpx

import pytest

from conftest import dispute_response, grading_response, question
from papermark.errors import UpstreamError


def b64(content: bytes) -> str:
    return base64.b64encode(content).decode()


EXAM_UPLOAD = {
    "subject": "math",
    "paper_type": "paper3",
    "paper_code": "9709/31",
    "session_label": "October/November",
    "year": 2023,
    "exam_files": [{"name": "page1.jpg", "data": b64(b"page-one"), "type": "image/jpeg"}],
    "mark_scheme_file": {"name": "ms.pdf", "data": b64(b"%PDF-ms"), "type": "application/pdf"},
}


def auth(token):
    return {"Authorization": f"Bearer {token}"}


async def test_health_and_root(client):
    health = await client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    root = await client.get("/")
    assert root.json()["app"] == "PaperMark"


async def test_catalog_is_public(client):
    response = await client.get("/api/catalog/subjects")

    assert response.status_code == 200
    body = response.json()
    assert [s["value"] for s in body["subjects"]] == ["math", "physics", "chemistry"]
    assert body["subject_paper_map"]["physics"][0] == "mcq"


@pytest.mark.parametrize("method, path", [
    ("get", "/api/auth/me"),
    ("get", "/api/exams"),
    ("get", "/api/exams/1"),
    ("post", "/api/exams/1/grade"),
    ("get", "/api/results"),
    ("get", "/api/results/1"),
    ("post", "/api/results/1/regrade"),
    ("get", "/api/progress/summary"),
    ("get", "/api/progress/trend"),
    ("get", "/api/progress/topics"),
])
async def test_protected_routes_need_a_session(client, method, path):
    response = await getattr(client, method)(path)
    assert response.status_code == 401


async def test_auth_is_checked_before_body_validation(client):
    response = await client.post("/api/exams", json={})
    assert response.status_code == 401

    response = await client.post("/api/results/1/dispute", json={"reason": ""})
    assert response.status_code == 401


async def test_invalid_token_is_rejected(client):
    response = await client.get("/api/auth/me", headers=auth("bogus"))
    assert response.status_code == 401


async def test_me_with_cookie_and_bearer(client, session_token):
    by_header = await client.get("/api/auth/me", headers=auth(session_token))
    assert by_header.status_code == 200
    assert by_header.json()["open_id"] == "student-1"

    client.cookies.set("session_token", session_token)
    by_cookie = await client.get("/api/auth/me")
    assert by_cookie.status_code == 200


async def test_logout_ends_session(client, session_token):
    response = await client.post("/api/auth/logout", headers=auth(session_token))
    assert response.status_code == 200
    assert response.json() == {"success": True}

    after = await client.get("/api/auth/me", headers=auth(session_token))
    assert after.status_code == 401


async def test_session_exchange_signs_in(client, auth_service):
    response = await client.post("/api/auth/session", json={"session_id": "good-session"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["open_id"] == "google-123"
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["role"] == "user"
    assert auth_service[0].headers["X-Session-ID"] == "good-session"
    assert str(auth_service[0].url) == "http://auth.testserver/session-data"

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"session_token={body['session_token']}")
    assert "httponly" in cookie.lower()

    me = await client.get("/api/auth/me", headers=auth(body["session_token"]))
    assert me.status_code == 200
    assert me.json()["id"] == body["user"]["id"]


async def test_session_exchange_is_idempotent_per_identity(client, auth_service):
    first = (await client.post("/api/auth/session", json={"session_id": "good-session"})).json()
    second = (await client.post("/api/auth/session", json={"session_id": "good-session"})).json()

    assert first["user"]["id"] == second["user"]["id"]
    assert first["session_token"] != second["session_token"]


async def test_session_exchange_promotes_owner(client, auth_service):
    response = await client.post("/api/auth/session", json={"session_id": "owner-session"})
    assert response.json()["user"]["role"] == "admin"


async def test_session_exchange_rejects_unknown_session_id(client, auth_service):
    response = await client.post("/api/auth/session", json={"session_id": "forged"})

    assert response.status_code == 401
    assert "set-cookie" not in response.headers


async def test_session_exchange_with_auth_service_down(client, services):
    def handler(request):
        raise httpx.ConnectError("connection refused")

    services.identity.http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    response = await client.post("/api/auth/session", json={"session_id": "good-session"})
    assert response.status_code == 502


async def test_session_exchange_without_auth_service(client, services):
    services.identity.auth_service_url = ""

    response = await client.post("/api/auth/session", json={"session_id": "good-session"})
    assert response.status_code == 502


async def test_logout_without_session(client):
    response = await client.post("/api/auth/logout")
    assert response.status_code == 200


async def test_full_grading_flow(client, oracle, session_token):
    headers = auth(session_token)

    created = await client.post("/api/exams", json=EXAM_UPLOAD, headers=headers)
    assert created.status_code == 200
    exam_id = created.json()["exam_id"]

    exam = (await client.get(f"/api/exams/{exam_id}", headers=headers)).json()
    assert exam["status"] == "pending"
    assert exam["paper_code"] == "9709/31"

    page = await client.get(exam["exam_file_urls"][0].replace("http://testserver", ""))
    assert page.status_code == 200
    assert page.content == b"page-one"
    assert page.headers["content-type"].startswith("image/jpeg")

    oracle.queue(grading_response([
        question("1", "Complex numbers", 5, 5),
        question("2", "Vectors", 5, 5),
    ]))
    graded = await client.post(f"/api/exams/{exam_id}/grade", headers=headers)
    assert graded.status_code == 200
    exam_result_id = graded.json()["exam_result_id"]

    result = (await client.get(f"/api/results/{exam_id}", headers=headers)).json()
    assert result["id"] == exam_result_id
    assert result["grade"] == "A*"
    assert len(result["questions"]) == 2

    oracle.queue(dispute_response(3, 5, accepted=True))
    disputed = await client.post(
        f"/api/results/{exam_id}/dispute",
        json={"question_result_id": result["questions"][1]["id"], "reason": "Alternative method"},
        headers=headers
    )
    assert disputed.status_code == 200
    assert disputed.json()["new_total_score"] == 8
    assert disputed.json()["new_grade"] == "A"

    listed = (await client.get("/api/results", headers=headers)).json()
    assert len(listed) == 1
    assert listed[0]["exam"]["id"] == exam_id
    assert listed[0]["exam_result"]["percentage"] == 80
    assert "analysis_data" not in listed[0]["exam_result"]

    summary = (await client.get("/api/progress/summary", headers=headers)).json()
    assert summary == [{
        "subject": "math",
        "paper_type": "paper3",
        "avg_percentage": 80.0,
        "total_exams": 1,
        "latest_percentage": 80,
    }]

    topics = (await client.get("/api/progress/topics?subject=math", headers=headers)).json()
    assert {t["topic"] for t in topics} == {"Complex numbers", "Vectors"}

    trend = (await client.get("/api/progress/trend?subject=math&paper_type=paper3", headers=headers)).json()
    assert [p["exam_id"] for p in trend] == [exam_id]

    regraded = await client.post(f"/api/results/{exam_id}/regrade", headers=headers)
    assert regraded.json() == {"success": True, "exam_id": exam_id}
    missing = await client.get(f"/api/results/{exam_id}", headers=headers)
    assert missing.status_code == 404


async def test_invalid_paper_type_is_400(client, session_token):
    body = dict(EXAM_UPLOAD, subject="physics", paper_type="paper6")
    response = await client.post("/api/exams", json=body, headers=auth(session_token))
    assert response.status_code == 400


async def test_list_exams_query_bounds(client, session_token):
    headers = auth(session_token)
    assert (await client.get("/api/exams?limit=0", headers=headers)).status_code == 422
    assert (await client.get("/api/exams?limit=101", headers=headers)).status_code == 422
    assert (await client.get("/api/exams?offset=-1", headers=headers)).status_code == 422
    assert (await client.get("/api/exams?limit=100", headers=headers)).status_code == 200


async def test_other_users_exam_is_404(client, exam_id, other_session_token):
    headers = auth(other_session_token)

    assert (await client.get(f"/api/exams/{exam_id}", headers=headers)).status_code == 404
    assert (await client.post(f"/api/exams/{exam_id}/grade", headers=headers)).status_code == 404
    assert (await client.post(f"/api/results/{exam_id}/regrade", headers=headers)).status_code == 404
    dispute = await client.post(
        f"/api/results/{exam_id}/dispute",
        json={"question_result_id": 1, "reason": "mine"},
        headers=headers
    )
    assert dispute.status_code == 404


async def test_oracle_failure_is_502(client, oracle, exam_id, session_token):
    oracle.queue(UpstreamError("AI grading timed out after 180 seconds"))

    response = await client.post(f"/api/exams/{exam_id}/grade", headers=auth(session_token))

    assert response.status_code == 502
    assert "timed out" in response.json()["detail"]


async def test_grading_in_progress_is_409(client, database, exam_id, session_token):
    await database["exams"].update_one({"id": exam_id}, {"$set": {"status": "grading"}})

    response = await client.post(f"/api/exams/{exam_id}/grade", headers=auth(session_token))

    assert response.status_code == 409


async def test_empty_dispute_reason_is_400(client, exam_id, session_token):
    response = await client.post(
        f"/api/results/{exam_id}/dispute",
        json={"question_result_id": 1, "reason": "   "},
        headers=auth(session_token)
    )
    assert response.status_code == 400


async def test_unknown_file_is_404(client):
    response = await client.get("/api/files/exams/1/nope.jpg")
    assert response.status_code == 404
