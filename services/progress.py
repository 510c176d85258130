# services/progress.py
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from datetime import datetime
from typing import Optional
import logging
from models.course import Course
from models.progress import Progress, ExamAttempt
from errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 5

def _key(user_id: str, course_id: str) -> dict:
    return {"userId": user_id, "courseId": course_id}

def _version_filter(expected_version: int) -> dict:
    # records written before versioning have no field; they read back as 0
    if expected_version == 0:
        return {"$or": [{"version": 0}, {"version": {"$exists": False}}]}
    return {"version": expected_version}

async def get_progress(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> Optional[Progress]:
    doc = await db.progress.find_one(_key(user_id, course_id), {"_id": 0})
    return Progress(**doc) if doc else None

async def get_or_create_progress(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> Progress:
    """Atomic find-or-create on the unique (userId, courseId) pair."""
    now = datetime.utcnow()
    try:
        doc = await db.progress.find_one_and_update(
            _key(user_id, course_id),
            {"$setOnInsert": {
                "completedLessons": [],
                "examAttempts": [],
                "finalExamScore": None,
                "finalExamPassed": None,
                "enrolledAt": now,
                "lastAccessed": now,
                "version": 0,
            }},
            projection={"_id": 0},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        # a concurrent request inserted it first
        doc = await db.progress.find_one(_key(user_id, course_id), {"_id": 0})
    return Progress(**doc)

async def record_lesson_completion(
    db: AsyncIOMotorDatabase, user_id: str, course_id: str, lesson_id: str, quiz_score: int = 0
) -> Progress:
    """Idempotent per lesson. A repeat completion can only raise the score.

    The read-modify-write is guarded by a compare-and-swap on ``version`` so
    two concurrent completions cannot duplicate an entry or lose a score.
    """
    quiz_score = quiz_score or 0
    if not 0 <= quiz_score <= 100:
        raise ValidationError("Quiz score must be between 0 and 100.")

    for _ in range(MAX_WRITE_ATTEMPTS):
        progress = await get_or_create_progress(db, user_id, course_id)
        now = datetime.utcnow()
        expected_version = progress.version
        progress.complete_lesson(lesson_id, quiz_score, now)
        progress.lastAccessed = now
        result = await db.progress.update_one(
            {**_key(user_id, course_id), **_version_filter(expected_version)},
            {
                "$set": {
                    "completedLessons": [entry.model_dump() for entry in progress.completedLessons],
                    "lastAccessed": now,
                },
                "$inc": {"version": 1},
            },
        )
        if result.matched_count == 1:
            progress.version = expected_version + 1
            logger.info(f"Lesson {lesson_id} recorded for user {user_id} in course {course_id}")
            return progress
        logger.warning(f"Progress for user {user_id} in course {course_id} changed concurrently, retrying")

    raise ConflictError("Progress is being updated by another request. Please retry.")

def is_course_complete(course: Course, progress: Optional[Progress]) -> bool:
    """Every lesson of the course has a completion entry."""
    lesson_ids = set(course.lesson_ids())
    if not lesson_ids or progress is None:
        return False
    return lesson_ids <= progress.completed_ids()

async def record_exam_attempt(
    db: AsyncIOMotorDatabase, user_id: str, course_id: str, score: int, passed: bool
) -> Progress:
    """Append an attempt. finalExamScore/finalExamPassed mirror the latest one."""
    await get_or_create_progress(db, user_id, course_id)
    now = datetime.utcnow()
    attempt = ExamAttempt(score=score, attemptDate=now, passed=passed)
    doc = await db.progress.find_one_and_update(
        _key(user_id, course_id),
        {
            "$push": {"examAttempts": attempt.model_dump()},
            "$set": {"finalExamScore": score, "finalExamPassed": passed, "lastAccessed": now},
            "$inc": {"version": 1},
        },
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    logger.info(f"Exam attempt for user {user_id} in course {course_id}: score={score}, passed={passed}")
    return Progress(**doc)

def exam_history(progress: Optional[Progress]) -> dict:
    attempts = progress.examAttempts if progress else []
    return {
        "attempts": [a.model_dump() for a in attempts],
        "totalAttempts": len(attempts),
        "bestScore": max((a.score for a in attempts), default=None),
        "hasPassed": any(a.passed for a in attempts),
        "latestScore": progress.finalExamScore if progress else None,
    }
