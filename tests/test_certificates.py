import re

import pytest
from fastapi import BackgroundTasks

from conftest import Outbox, build_course, build_exam
from errors import NotFoundError
from services import certificates as certificate_service
from services.certificates import (
    generate_certificate_number,
    get_certificate,
    issue_certificate,
    list_certificates,
    mark_downloaded,
)
from services.progress import is_course_complete, record_exam_attempt, record_lesson_completion

NUMBER_RE = re.compile(r"^VA-\d+-[A-Z0-9]{9}$")


def test_certificate_number_format():
    assert NUMBER_RE.match(generate_certificate_number())
    assert generate_certificate_number(now_ms=1700000000000).startswith("VA-1700000000000-")


def test_certificate_numbers_are_unique_in_bulk():
    # statistical: the random suffix is 36**9 wide
    numbers = {generate_certificate_number() for _ in range(10_000)}
    assert len(numbers) == 10_000


async def test_networking_scenario(db, student, course, outbox):
    lesson_a, lesson_b = course.lesson_ids()
    await record_lesson_completion(db, student["id"], course.id, lesson_a, 80)
    progress = await record_lesson_completion(db, student["id"], course.id, lesson_a, 60)
    assert progress.completedLessons[0].quizScore == 80
    assert not is_course_complete(course, progress)

    progress = await record_lesson_completion(db, student["id"], course.id, lesson_b, 100)
    assert is_course_complete(course, progress)

    certificate, created = await issue_certificate(db, student["id"], course, progress, mailer=outbox.send)
    assert created
    assert NUMBER_RE.match(certificate.certificateNumber)
    assert certificate.userName == "Ada"
    assert certificate.courseTitle == "Intro to Networking"
    assert certificate.quizScores == {lesson_a: 80, lesson_b: 100}
    assert certificate.totalQuizScore == 90
    assert certificate.completionPath == "lessons"
    assert await db.certificates.count_documents({}) == 1

    assert len(outbox.sent) == 1
    assert outbox.sent[0]["to"] == "ada@example.com"
    assert certificate.certificateNumber in outbox.sent[0]["text"]

    stored_course = await db.courses.find_one({"id": course.id})
    assert stored_course["certificateCount"] == 1


async def test_issuance_is_idempotent(db, student, course, outbox):
    progress = None
    for lesson_id in course.lesson_ids():
        progress = await record_lesson_completion(db, student["id"], course.id, lesson_id, 50)
    first, created_first = await issue_certificate(db, student["id"], course, progress, mailer=outbox.send)

    progress = await record_lesson_completion(db, student["id"], course.id, course.lesson_ids()[0], 100)
    second, created_second = await issue_certificate(db, student["id"], course, progress, mailer=outbox.send)

    assert created_first and not created_second
    assert second.certificateNumber == first.certificateNumber
    assert second.totalQuizScore == 50
    assert await db.certificates.count_documents({"userId": student["id"]}) == 1
    assert len(outbox.sent) == 1


async def test_number_collision_is_retried(db, student, course, outbox, monkeypatch):
    other = build_course(title="Other")
    taken = "VA-1-AAAAAAAAA"
    progress = await record_lesson_completion(db, student["id"], other.id, other.lesson_ids()[0], 10)
    numbers = iter([taken, taken, "VA-2-BBBBBBBBB"])
    monkeypatch.setattr(certificate_service, "generate_certificate_number", lambda: next(numbers))

    first, _ = await issue_certificate(db, student["id"], other, progress, mailer=outbox.send)
    assert first.certificateNumber == taken

    progress = await record_lesson_completion(db, student["id"], course.id, course.lesson_ids()[0], 10)
    second, created = await issue_certificate(db, student["id"], course, progress, mailer=outbox.send)
    assert created
    assert second.certificateNumber == "VA-2-BBBBBBBBB"


async def test_email_failure_does_not_fail_issuance(db, student, course):
    progress = await record_lesson_completion(db, student["id"], course.id, course.lesson_ids()[0], 70)
    certificate, created = await issue_certificate(
        db, student["id"], course, progress, mailer=Outbox(raise_error=True).send
    )
    assert created
    assert await get_certificate(db, student["id"], course.id) is not None


async def test_rejected_email_is_tolerated(db, student, course):
    progress = await record_lesson_completion(db, student["id"], course.id, course.lesson_ids()[0], 70)
    outbox = Outbox(fail=True)
    _, created = await issue_certificate(db, student["id"], course, progress, mailer=outbox.send)
    assert created and len(outbox.sent) == 1


async def test_user_without_record_still_certified(db, course, outbox):
    progress = await record_lesson_completion(db, "ghost", course.id, course.lesson_ids()[0], 70)
    certificate, created = await issue_certificate(db, "ghost", course, progress, mailer=outbox.send)
    assert created
    assert certificate.userName == "User"
    assert outbox.sent == []


async def test_exam_path_uses_exam_score(db, student, outbox):
    course = build_course(exam=build_exam(passing_score=70))
    await db.courses.insert_one(course.model_dump())

    failed = await record_exam_attempt(db, student["id"], course.id, 65, False)
    assert failed.finalExamPassed is False
    assert await get_certificate(db, student["id"], course.id) is None

    passed = await record_exam_attempt(db, student["id"], course.id, 85, True)
    certificate, created = await issue_certificate(
        db, student["id"], course, passed, path="exam", exam_score=85, mailer=outbox.send
    )
    assert created and certificate.totalQuizScore == 85 and certificate.completionPath == "exam"

    again = await record_exam_attempt(db, student["id"], course.id, 90, True)
    same, created = await issue_certificate(
        db, student["id"], course, again, path="exam", exam_score=90, mailer=outbox.send
    )
    assert not created
    assert same.totalQuizScore == 85
    assert len(again.examAttempts) == 3


async def test_mark_downloaded_and_listing(db, student, course, outbox):
    progress = await record_lesson_completion(db, student["id"], course.id, course.lesson_ids()[0], 70)
    issued, _ = await issue_certificate(db, student["id"], course, progress, mailer=outbox.send)

    downloaded = await mark_downloaded(db, student["id"], course.id)
    assert downloaded.isDownloaded is True
    assert downloaded.downloadedAt is not None
    assert downloaded.certificateNumber == issued.certificateNumber
    assert downloaded.totalQuizScore == issued.totalQuizScore

    listed = await list_certificates(db, student["id"])
    assert [c.id for c in listed] == [issued.id]

    with pytest.raises(NotFoundError):
        await mark_downloaded(db, student["id"], "no-such-course")


async def test_completion_email_can_be_deferred(db, student, course, outbox):
    progress = await record_lesson_completion(db, student["id"], course.id, course.lesson_ids()[0], 70)
    tasks = BackgroundTasks()
    certificate, created = await issue_certificate(
        db, student["id"], course, progress, mailer=outbox.send, background_tasks=tasks
    )
    assert created
    assert outbox.sent == []
    assert len(tasks.tasks) == 1

    await tasks()
    assert len(outbox.sent) == 1
    assert certificate.certificateNumber in outbox.sent[0]["text"]


async def test_certificate_name_falls_back_to_username(db, course, outbox):
    await db.users.insert_one({"id": "u-2", "email": "g@example.com", "name": "", "username": "grace"})
    progress = await record_lesson_completion(db, "u-2", course.id, course.lesson_ids()[0], 70)
    certificate, _ = await issue_certificate(db, "u-2", course, progress, mailer=outbox.send)
    assert certificate.userName == "grace"
