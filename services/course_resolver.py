# services/course_resolver.py
from motor.motor_asyncio import AsyncIOMotorDatabase
from urllib.parse import unquote
from bson import ObjectId
from typing import Tuple
import logging
from models.course import Course, Lesson, slugify
from errors import NotFoundError

logger = logging.getLogger(__name__)

async def resolve_course(db: AsyncIOMotorDatabase, identifier: str) -> Course:
    """Find a course by id, then slug, then exact title.

    Slugs are not unique for legacy courses and old links may carry a raw
    title, so the first match in that order wins.
    """
    if not identifier:
        raise NotFoundError("Course not found.")

    if ObjectId.is_valid(identifier):
        doc = await db.courses.find_one({"id": identifier}, {"_id": 0})
        if doc:
            return Course(**doc)

    decoded = unquote(identifier)
    doc = await db.courses.find_one({"slug": decoded}, {"_id": 0})
    if not doc:
        doc = await db.courses.find_one({"title": decoded}, {"_id": 0})
    if not doc:
        logger.info(f"No course matches identifier: {identifier}")
        raise NotFoundError("Course not found.")
    return Course(**doc)

def find_lesson(course: Course, lesson_id: str) -> Lesson:
    lesson = course.find_lesson(lesson_id)
    if not lesson:
        raise NotFoundError("Lesson not found in this course.")
    return lesson

async def unique_slug(db: AsyncIOMotorDatabase, title: str, exclude_id: str = None) -> str:
    """Slug derived from title, suffixed with -2, -3, ... until unused."""
    base = slugify(title) or "course"
    candidate = base
    n = 2
    while True:
        query = {"slug": candidate}
        if exclude_id:
            query["id"] = {"$ne": exclude_id}
        if not await db.courses.find_one(query, {"_id": 1}):
            return candidate
        candidate = f"{base}-{n}"
        n += 1

def _strip_question(q: dict) -> dict:
    return {k: v for k, v in q.items() if k not in ("correctAnswer", "explanation")}

def public_view(course: Course, include_content: bool = True) -> dict:
    """Course as served to learners: no answer keys, optionally no inline content."""
    data = course.model_dump()
    for module in data["modules"]:
        for lesson in module["lessons"]:
            lesson["quiz"] = [_strip_question(q) for q in lesson["quiz"]]
            if not include_content:
                lesson.pop("content", None)
    if data.get("finalExam"):
        data["finalExam"]["questions"] = [_strip_question(q) for q in data["finalExam"]["questions"]]
    return data
