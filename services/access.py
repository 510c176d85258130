# services/access.py
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import logging
from models.course import Course
from models.subscription import Subscription
from errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

async def active_subscription(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> Optional[Subscription]:
    now = datetime.utcnow()
    docs = await db.subscriptions.find(
        {"userId": user_id, "courseId": course_id, "status": "active"}, {"_id": 0}
    ).to_list(None)
    for doc in docs:
        sub = Subscription(**doc)
        if sub.is_current(now):
            return sub
    return None

async def check_course_access(db: AsyncIOMotorDatabase, course: Course, user: Optional[dict]) -> dict:
    """Decide access from scratch on each call.

    Free public courses are open. Anything else needs a signed-in user who
    created the course, is an admin, or holds a current subscription.
    """
    if course.is_free():
        return {"hasAccess": True, "tier": "free", "reason": "free"}

    if not user:
        raise UnauthorizedError("Please log in to access this course")

    if course.createdBy and course.createdBy == user["id"]:
        return {"hasAccess": True, "tier": course.tier, "reason": "creator"}
    if user.get("role") == "admin":
        return {"hasAccess": True, "tier": course.tier, "reason": "admin"}

    subscription = await active_subscription(db, user["id"], course.id)
    if subscription:
        return {"hasAccess": True, "tier": course.tier, "reason": subscription.subscriptionType}

    logger.info(f"User {user['id']} denied access to {course.tier} course {course.id}")
    raise ForbiddenError(f"This is a {course.tier} course. Please purchase or subscribe to access.")
