"""
Test configuration and fixtures for the PaperMark test suite.

MongoDB is replaced by mongomock-motor, content storage by an in-memory
dict and the grading oracle by a scripted fake, so nothing here needs a
network or a running server.
"""

import json

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from papermark.config.settings import Settings
from papermark.container import Services
from papermark.db import Database
from papermark.errors import UpstreamError


class FakeOracle:
    """Returns queued responses in order and records every request."""

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    async def invoke(self, parts, schema_name, schema):
        self.calls.append({"parts": parts, "schema_name": schema_name, "schema": schema})
        if not self.responses:
            raise UpstreamError("No response from AI grading")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def aclose(self):
        pass


class MemoryStorage:
    """Content storage kept in a dict, same put/open contract as GridFSStorage."""

    def __init__(self, public_base_url="http://testserver"):
        self.public_base_url = public_base_url
        self.files = {}

    def url_for(self, key):
        return f"{self.public_base_url}/api/files/{key}"

    async def put(self, key, data, content_type):
        self.files[key] = (data, content_type)
        return {"key": key, "url": self.url_for(key)}

    async def open(self, key):
        return self.files.get(key)


def question(number="1", topic="Algebra", score=5, max_score=5, **overrides):
    """One graded question in the oracle's camelCase wire shape."""
    row = {
        "questionNumber": number,
        "topic": topic,
        "score": score,
        "maxScore": max_score,
        "isCorrect": score == max_score,
        "feedback": f"Feedback for {number}",
        "studentAnswer": "x = 2",
        "correctAnswer": "x = 2",
    }
    row.update(overrides)
    return row


def grading_response(questions=None, **overrides) -> str:
    """A schema-valid grading answer; totals follow the questions unless overridden."""
    if questions is None:
        questions = [question("1"), question("2")]
    total = sum(q["score"] for q in questions)
    maximum = sum(q["maxScore"] for q in questions)
    percentage = round(total / maximum * 100) if maximum else 0
    payload = {
        "totalScore": total,
        "maxScore": maximum,
        "percentage": percentage,
        "grade": "A*" if percentage >= 90 else "B",
        "overallFeedback": "Solid work overall.",
        "strengths": ["Algebraic manipulation"],
        "weaknesses": ["Showing working"],
        "focusAreas": ["Integration"],
        "drillTopics": ["Integration by parts"],
        "questions": questions,
    }
    payload.update(overrides)
    return json.dumps(payload)


def dispute_response(new_score, max_score, accepted=True, feedback="Re-evaluated.") -> str:
    return json.dumps({
        "newScore": new_score,
        "maxScore": max_score,
        "accepted": accepted,
        "feedback": feedback,
    })


@pytest.fixture
def settings():
    settings = Settings()
    settings.PUBLIC_BASE_URL = "http://testserver"
    settings.OWNER_OPEN_ID = "owner-open-id"
    settings.AUTH_SERVICE_URL = "http://auth.testserver/session-data"
    settings.CORS_ORIGINS = ["*"]
    return settings


@pytest.fixture
def database():
    return Database(AsyncMongoMockClient(), "papermark_test")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def services(settings, database, storage, oracle):
    return Services(settings, database, storage, oracle)


@pytest.fixture
async def session_token(services):
    """Session of the first test student."""
    return await services.identity.sign_in("student-1", name="Student One", email="one@example.com")


@pytest.fixture
async def user(services, session_token):
    return await services.identity.resolve(session_token)


@pytest.fixture
async def other_session_token(services):
    return await services.identity.sign_in("student-2", name="Student Two")


@pytest.fixture
async def other_user(services, other_session_token):
    return await services.identity.resolve(other_session_token)


@pytest.fixture
async def exam_id(services, user):
    """A pending Mathematics Paper 1 exam with two pages and a mark scheme."""
    return await services.exams.create(
        user.id,
        subject="math",
        paper_type="paper1",
        exam_file_urls=[
            "http://testserver/api/files/exams/1/page1.jpg",
            "http://testserver/api/files/exams/1/page2.png",
        ],
        mark_scheme_url="http://testserver/api/files/markschemes/1/ms.pdf",
        paper_code="9709/12",
        session_label="May/June",
        year=2024
    )


@pytest.fixture
def identities():
    """session_id -> identity the auth service vouches for."""
    return {
        "good-session": {"id": "google-123", "name": "New Student", "email": "new@example.com"},
        "owner-session": {"sub": "owner-open-id", "name": "Owner"},
    }


@pytest.fixture
def auth_service(services, identities):
    """Auth service answering from `identities`; unknown session ids get 401."""
    requests = []

    def handler(request):
        requests.append(request)
        identity = identities.get(request.headers.get("X-Session-ID"))
        if identity is None:
            return httpx.Response(401, json={"detail": "unknown session"})
        return httpx.Response(200, json=identity)

    services.identity.http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return requests


@pytest.fixture
def app(services):
    from main import create_app
    return create_app(services=services)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
