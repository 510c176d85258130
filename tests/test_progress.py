from datetime import datetime

import pytest

from conftest import build_course
from errors import ConflictError, ValidationError
from services import progress as progress_service
from services.progress import (
    exam_history,
    get_or_create_progress,
    get_progress,
    is_course_complete,
    record_exam_attempt,
    record_lesson_completion,
)

USER = "64b7f0c2a1b2c3d4e5f60001"


async def test_progress_created_lazily(db, course):
    assert await get_progress(db, USER, course.id) is None
    created = await get_or_create_progress(db, USER, course.id)
    again = await get_or_create_progress(db, USER, course.id)
    assert created.completedLessons == [] and again.version == 0
    assert await db.progress.count_documents({"userId": USER, "courseId": course.id}) == 1


async def test_recompletion_keeps_best_score(db, course):
    lesson_a = course.lesson_ids()[0]
    first = await record_lesson_completion(db, USER, course.id, lesson_a, 80)
    second = await record_lesson_completion(db, USER, course.id, lesson_a, 60)
    assert len(first.completedLessons) == 1
    assert len(second.completedLessons) == 1
    assert second.completedLessons[0].quizScore == 80

    third = await record_lesson_completion(db, USER, course.id, lesson_a, 90)
    assert third.completedLessons[0].quizScore == 90
    stored = await get_progress(db, USER, course.id)
    assert stored.completedLessons[0].quizScore == 90
    assert stored.version == 3


async def test_missing_score_counts_as_zero(db, course):
    p = await record_lesson_completion(db, USER, course.id, course.lesson_ids()[0], None)
    assert p.completedLessons[0].quizScore == 0


async def test_invalid_score_rejected(db, course):
    with pytest.raises(ValidationError):
        await record_lesson_completion(db, USER, course.id, course.lesson_ids()[0], 120)


async def test_completion_retries_after_concurrent_write(db, course, monkeypatch):
    lesson_a, lesson_b = course.lesson_ids()
    await record_lesson_completion(db, USER, course.id, lesson_a, 50)

    real_get = progress_service.get_or_create_progress
    calls = {"n": 0}

    async def racing_get(database, user_id, course_id):
        snapshot = await real_get(database, user_id, course_id)
        if calls["n"] == 0:
            # another request lands between our read and our write
            await database.progress.update_one(
                {"userId": user_id, "courseId": course_id},
                {"$set": {"completedLessons.0.quizScore": 70}, "$inc": {"version": 1}},
            )
        calls["n"] += 1
        return snapshot

    monkeypatch.setattr(progress_service, "get_or_create_progress", racing_get)
    result = await record_lesson_completion(db, USER, course.id, lesson_b, 40)

    assert calls["n"] == 2
    scores = {e.lessonId: e.quizScore for e in result.completedLessons}
    assert scores == {lesson_a: 70, lesson_b: 40}


async def test_completion_gives_up_when_always_raced(db, course, monkeypatch):
    real_get = progress_service.get_or_create_progress

    async def always_stale(database, user_id, course_id):
        snapshot = await real_get(database, user_id, course_id)
        await database.progress.update_one({"userId": user_id, "courseId": course_id}, {"$inc": {"version": 1}})
        return snapshot

    monkeypatch.setattr(progress_service, "get_or_create_progress", always_stale)
    with pytest.raises(ConflictError):
        await record_lesson_completion(db, USER, course.id, course.lesson_ids()[0], 10)


async def test_course_complete_uses_lesson_sets(db, course):
    lesson_a, lesson_b = course.lesson_ids()
    p = await record_lesson_completion(db, USER, course.id, lesson_a, 80)
    assert not is_course_complete(course, p)
    # a stray id from a deleted lesson must not count toward completion
    p = await record_lesson_completion(db, USER, course.id, "deleted-lesson", 0)
    assert len(p.completedLessons) == 2
    assert not is_course_complete(course, p)
    p = await record_lesson_completion(db, USER, course.id, lesson_b, 70)
    assert is_course_complete(course, p)


def test_empty_course_never_complete():
    assert not is_course_complete(build_course(lessons=0), None)


async def test_exam_attempts_append_and_track_latest(db, course):
    await record_exam_attempt(db, USER, course.id, 65, False)
    p = await record_exam_attempt(db, USER, course.id, 85, True)
    p = await record_exam_attempt(db, USER, course.id, 60, False)
    assert [a.score for a in p.examAttempts] == [65, 85, 60]
    assert p.finalExamScore == 60
    assert p.finalExamPassed is False

    history = exam_history(p)
    assert history["bestScore"] == 85
    assert history["totalAttempts"] == 3
    assert history["hasPassed"] is True
    assert history["latestScore"] == 60


def test_exam_history_without_progress():
    history = exam_history(None)
    assert history["attempts"] == []
    assert history["bestScore"] is None
    assert history["hasPassed"] is False


async def test_completion_on_record_without_version(db, course):
    lesson_a, lesson_b = course.lesson_ids()
    await db.progress.insert_one({
        "userId": USER, "courseId": course.id,
        "completedLessons": [{"lessonId": lesson_a, "completedAt": datetime.utcnow(), "quizScore": 40}],
        "examAttempts": [],
    })
    progress = await record_lesson_completion(db, USER, course.id, lesson_b, 70)
    assert progress.completed_ids() == {lesson_a, lesson_b}
    stored = await db.progress.find_one({"userId": USER, "courseId": course.id})
    assert stored["version"] == 1

    progress = await record_lesson_completion(db, USER, course.id, lesson_a, 90)
    assert progress.completedLessons[0].quizScore == 90
    assert (await get_progress(db, USER, course.id)).version == 2
