import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

import database
from database import init_db
from main import app
from models.course import Course, FinalExam, Lesson, Module, Question
from routes.auth import create_access_token
from services.mailer import get_mailer
from services.storage import get_storage


class Outbox:
    """Stands in for the mail sender and keeps what would have been sent."""

    def __init__(self, fail=False, raise_error=False):
        self.sent = []
        self.fail = fail
        self.raise_error = raise_error

    async def send(self, to, subject, html, text=None):
        if self.raise_error:
            raise RuntimeError("smtp down")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        if self.fail:
            return {"success": False, "message": "rejected"}
        return {"success": True, "message": "Email sent successfully"}


class MemoryStorage:
    def __init__(self):
        self.objects = {}
        self.deleted = []

    async def upload(self, data, filename, content_type=None, folder="courses"):
        key = f"{folder}/{len(self.objects)}-{filename}"
        self.objects[key] = data
        return {"fileName": key, "url": f"https://files.test/{key}"}

    async def delete(self, key):
        self.deleted.append(key)
        return self.objects.pop(key, None) is not None


def quiz(*answers):
    return [
        Question(question=f"Q{i}", options=[a, "wrong"], correctAnswer=a, explanation=f"because {a}")
        for i, a in enumerate(answers)
    ]


def build_course(title="Intro to Networking", lessons=2, exam=None, **kwargs):
    module = Module(
        title="Basics",
        lessons=[Lesson(title=f"Lesson {i}", content="text", quiz=quiz("a", "b")) for i in range(lessons)],
    )
    return Course(title=title, modules=[module], finalExam=exam, status="published", **kwargs)


def build_exam(passing_score=70, count=20, enabled=True):
    return FinalExam(
        questions=quiz(*[f"ans{i}" for i in range(count)]),
        passingScore=passing_score,
        isEnabled=enabled,
    )


def exam_answers(course, correct):
    """Answer the first `correct` exam questions right, the rest wrong."""
    return {
        str(i): (q.correctAnswer if i < correct else "wrong")
        for i, q in enumerate(course.finalExam.questions)
    }


@pytest.fixture
async def db():
    mock_db = AsyncMongoMockClient()["academy_test"]
    await init_db(mock_db)
    return mock_db


@pytest.fixture
async def student(db):
    user = {"id": "64b7f0c2a1b2c3d4e5f60001", "email": "ada@example.com", "name": "Ada", "role": "user", "enrolledCourses": []}
    await db.users.insert_one(dict(user))
    return user


@pytest.fixture
async def course(db):
    c = build_course()
    await db.courses.insert_one(c.model_dump())
    return c


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def client(monkeypatch, outbox, storage):
    monkeypatch.setattr(database, "db", AsyncMongoMockClient()["academy_api_test"])
    app.dependency_overrides[get_mailer] = lambda: outbox.send
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_access_token('64b7f0c2a1b2c3d4e5f6aaaa', 'admin')}"}


def register(client, email="learner@example.com", name="Learner", password="secret123"):
    resp = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    assert resp.status_code == 201, resp.text
    user = resp.json()["user"]
    return user, {"Authorization": f"Bearer {create_access_token(user['id'], user['role'])}"}
