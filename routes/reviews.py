# routes/reviews.py
from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from database import get_db
from models.review import ReviewCreate, ReviewUpdate
from services.course_resolver import resolve_course
from services.reviews import list_reviews, create_review, update_review, delete_review
from .auth import get_current_user

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

@router.get("/{course_id}")
async def get_course_reviews(
    course_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    sort_by: str = Query("recent", alias="sortBy"),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await resolve_course(db, course_id)
    listing = await list_reviews(db, course.id, page, limit, sort_by)
    return {
        "success": True,
        "reviews": [r.model_dump() for r in listing["reviews"]],
        "stats": listing["stats"],
        "pagination": listing["pagination"],
    }

@router.post("/{course_id}", status_code=201)
async def create_course_review(course_id: str, body: ReviewCreate, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await resolve_course(db, course_id)
    review = await create_review(db, current_user["id"], course.id, body)
    return {"success": True, "message": "Review created successfully", "review": review.model_dump()}

@router.put("/{review_id}")
async def edit_review(review_id: str, body: ReviewUpdate, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    review = await update_review(db, current_user["id"], review_id, body)
    return {"success": True, "message": "Review updated successfully", "review": review.model_dump()}

@router.delete("/{review_id}")
async def remove_review(review_id: str, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    await delete_review(db, current_user, review_id)
    return {"success": True, "message": "Review deleted successfully"}
