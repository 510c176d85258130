# services/enrollment.py
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List
import logging
from models.user import Enrollment
from services.progress import get_or_create_progress
from errors import NotFoundError

logger = logging.getLogger(__name__)

async def enroll(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> bool:
    """Record the enrollment once. Returns True if it was new.

    Bookkeeping only: the caller has already checked access.
    """
    now = datetime.utcnow()
    entry = Enrollment(courseId=course_id, enrolledAt=now, lastAccessed=now)
    result = await db.users.update_one(
        {"id": user_id, "enrolledCourses.courseId": {"$ne": course_id}},
        {"$push": {"enrolledCourses": entry.model_dump()}},
    )
    created = result.modified_count == 1
    if created:
        await db.courses.update_one({"id": course_id}, {"$inc": {"enrollmentCount": 1}})
        logger.info(f"User {user_id} enrolled in course {course_id}")
    elif not await db.users.find_one({"id": user_id}, {"_id": 1}):
        raise NotFoundError("User not found.")

    await get_or_create_progress(db, user_id, course_id)
    return created

async def is_enrolled(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> bool:
    doc = await db.users.find_one({"id": user_id, "enrolledCourses.courseId": course_id}, {"_id": 1})
    return doc is not None

async def list_enrollments(db: AsyncIOMotorDatabase, user_id: str) -> List[Enrollment]:
    user = await db.users.find_one({"id": user_id}, {"_id": 0, "enrolledCourses": 1})
    if not user:
        raise NotFoundError("User not found.")
    return [Enrollment(**e) for e in user.get("enrolledCourses", [])]

async def touch(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> None:
    """Refresh lastAccessed on the user's enrollment entry, if any."""
    await db.users.update_one(
        {"id": user_id, "enrolledCourses.courseId": course_id},
        {"$set": {"enrolledCourses.$.lastAccessed": datetime.utcnow()}},
    )
