# services/reviews.py
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from datetime import datetime
from typing import List
import logging
from models.review import Review, ReviewCreate, ReviewUpdate
from models.user import display_name
from services.enrollment import is_enrolled
from services.progress import get_progress
from errors import ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

SORT_FIELDS = {"recent": "createdAt", "rating": "rating", "helpful": "helpfulCount"}
STAR_KEYS = {5: "fiveStars", 4: "fourStars", 3: "threeStars", 2: "twoStars", 1: "oneStar"}

def _visible(course_id: str) -> dict:
    return {"courseId": course_id, "isApproved": True, "isDeleted": False}

def rating_stats(ratings: List[int]) -> dict:
    stats = {"avgRating": 0, "totalReviews": len(ratings)}
    for stars, key in STAR_KEYS.items():
        stats[key] = sum(1 for r in ratings if r == stars)
    if ratings:
        stats["avgRating"] = round(sum(ratings) / len(ratings), 2)
    return stats

async def list_reviews(
    db: AsyncIOMotorDatabase, course_id: str, page: int = 1, limit: int = 10, sort_by: str = "recent"
) -> dict:
    query = _visible(course_id)
    field = SORT_FIELDS.get(sort_by, SORT_FIELDS["recent"])
    docs = await (
        db.reviews.find(query, {"_id": 0})
        .sort(field, -1)
        .skip((page - 1) * limit)
        .limit(limit)
        .to_list(None)
    )
    rated = await db.reviews.find(query, {"_id": 0, "rating": 1}).to_list(None)
    total = len(rated)
    return {
        "reviews": [Review(**doc) for doc in docs],
        "stats": rating_stats([doc["rating"] for doc in rated]),
        "pagination": {"total": total, "page": page, "limit": limit, "pages": (total + limit - 1) // limit},
    }

async def _find_review(db: AsyncIOMotorDatabase, review_id: str) -> Review:
    doc = await db.reviews.find_one({"id": review_id, "isDeleted": False}, {"_id": 0})
    if not doc:
        raise NotFoundError("Review not found.")
    return Review(**doc)

async def create_review(db: AsyncIOMotorDatabase, user_id: str, course_id: str, body: ReviewCreate) -> Review:
    """One review per (user, course), only from learners who started the course."""
    progress = await get_progress(db, user_id, course_id)
    if progress is None and not await is_enrolled(db, user_id, course_id):
        raise ForbiddenError("You must be enrolled in this course to review it.")

    user = await db.users.find_one({"id": user_id}, {"_id": 0, "password": 0})
    review = Review(courseId=course_id, userId=user_id, userName=display_name(user), **body.model_dump())
    try:
        await db.reviews.insert_one(review.model_dump())
    except DuplicateKeyError:
        # a review the user deleted comes back with the new content
        doc = await db.reviews.find_one_and_update(
            {"courseId": course_id, "userId": user_id, "isDeleted": True},
            {"$set": {
                **body.model_dump(),
                "userName": review.userName,
                "helpfulCount": 0,
                "unhelpfulCount": 0,
                "isDeleted": False,
                "updatedAt": datetime.utcnow(),
            }},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise ConflictError("You already have a review for this course.")
        review = Review(**doc)
    logger.info(f"Review {review.id} by user {user_id} for course {course_id}: {review.rating} stars")
    return review

async def update_review(db: AsyncIOMotorDatabase, user_id: str, review_id: str, body: ReviewUpdate) -> Review:
    review = await _find_review(db, review_id)
    if review.userId != user_id:
        raise ForbiddenError("You can only edit your own reviews.")
    changes = body.model_dump(exclude_none=True)
    changes["updatedAt"] = datetime.utcnow()
    doc = await db.reviews.find_one_and_update(
        {"id": review_id},
        {"$set": changes},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    return Review(**doc)

async def delete_review(db: AsyncIOMotorDatabase, user: dict, review_id: str) -> None:
    """Soft delete. Owners and admins only."""
    review = await _find_review(db, review_id)
    if review.userId != user["id"] and user.get("role") != "admin":
        raise ForbiddenError("You can only delete your own reviews.")
    await db.reviews.update_one(
        {"id": review_id}, {"$set": {"isDeleted": True, "updatedAt": datetime.utcnow()}}
    )
    logger.info(f"Review {review_id} deleted by {user['id']}")
