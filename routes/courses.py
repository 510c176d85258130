# routes/courses.py
from fastapi import APIRouter, HTTPException, Depends, File, UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import logging
from database import get_db
from models.course import Course, CourseCreate, CourseUpdate
from services.course_resolver import resolve_course, find_lesson, unique_slug, public_view
from services.access import check_course_access
from services.enrollment import enroll, list_enrollments
from services.progress import get_progress
from services.storage import ObjectStorage, StorageError, get_storage
from .auth import get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])

# Public

@router.get("/")
async def get_courses(status: Optional[str] = None, db: AsyncIOMotorDatabase = Depends(get_db)):
    query = {"status": status} if status else {}
    docs = await db.courses.find(query, {"_id": 0}).sort("createdAt", -1).to_list(None)
    return [public_view(Course(**doc), include_content=False) for doc in docs]

@router.get("/user/enrollments")
async def get_my_enrollments(current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    enrollments = await list_enrollments(db, current_user["id"])
    return {"success": True, "enrollments": [e.model_dump() for e in enrollments]}

@router.get("/{id}")
async def get_course(id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await resolve_course(db, id)
    return public_view(course)

# Learner

@router.post("/{id}/enroll")
async def enroll_in_course(id: str, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await resolve_course(db, id)
    await check_course_access(db, course, current_user)
    created = await enroll(db, current_user["id"], course.id)
    progress = await get_progress(db, current_user["id"], course.id)
    return {
        "success": True,
        "message": "Successfully enrolled in course!" if created else "Already enrolled in this course.",
        "progress": progress.model_dump() if progress else None,
    }

@router.get("/{id}/progress")
async def get_course_progress(id: str, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await resolve_course(db, id)
    progress = await get_progress(db, current_user["id"], course.id)
    if not progress:
        return {"completedLessons": []}
    return progress.model_dump()

# Admin

@router.post("/", status_code=201)
async def create_course(body: CourseCreate, current_user: dict = Depends(require_admin), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        course = Course(**body.model_dump(exclude_none=True), createdBy=current_user["id"])
    except ValueError as e:
        raise HTTPException(400, f"Invalid course: {str(e)}")
    course.slug = await unique_slug(db, course.title)
    await db.courses.insert_one(course.model_dump())
    logger.info(f"Course {course.id} ({course.slug}) created by {current_user['id']}")
    return {"success": True, "message": "Course created successfully!", "course": course.model_dump()}

@router.put("/{id}")
async def update_course(id: str, body: CourseUpdate, current_user: dict = Depends(require_admin), db: AsyncIOMotorDatabase = Depends(get_db)):
    existing = await resolve_course(db, id)
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(400, "No fields to update")
    changes["updatedAt"] = datetime.utcnow()
    try:
        updated = Course(**{**existing.model_dump(), **changes})
    except ValueError as e:
        raise HTTPException(400, f"Invalid course: {str(e)}")

    # lesson ids are referenced by progress records and must survive edits
    removed = set(existing.lesson_ids()) - set(updated.lesson_ids())
    if removed:
        logger.warning(f"Rejected update of course {existing.id}: would drop lessons {sorted(removed)}")
        raise HTTPException(
            400,
            "Course update would remove or re-identify existing lessons. "
            "Send every lesson with its id, and delete lessons explicitly.",
        )

    fields = {k: v for k, v in updated.model_dump().items() if k in changes}
    await db.courses.update_one({"id": existing.id}, {"$set": fields})
    return {"success": True, "message": "Course updated successfully!", "course": updated.model_dump()}

@router.delete("/{id}")
async def delete_course(
    id: str,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    doc = await db.courses.find_one({"id": id}, {"_id": 0})
    if not doc:
        raise HTTPException(404, "Course not found.")
    course = Course(**doc)

    keys = [course.imageFileKey] if course.imageFileKey else []
    keys += [l.contentFileKey for m in course.modules for l in m.lessons if l.contentFileKey]
    for key in keys:
        await storage.delete(key)

    await db.courses.delete_one({"id": course.id})
    await db.users.update_many(
        {"enrolledCourses.courseId": course.id},
        {"$pull": {"enrolledCourses": {"courseId": course.id}}},
    )
    logger.info(f"Course {course.id} deleted by {current_user['id']}")
    return {"success": True, "message": "Course deleted successfully!"}

@router.post("/{id}/image")
async def upload_course_image(
    id: str,
    image: UploadFile = File(...),
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    course = await resolve_course(db, id)
    try:
        uploaded = await storage.upload(await image.read(), image.filename, image.content_type, folder="courses/images")
    except StorageError as e:
        raise HTTPException(400, str(e))
    if course.imageFileKey:
        await storage.delete(course.imageFileKey)
    await db.courses.update_one(
        {"id": course.id},
        {"$set": {"imageUrl": uploaded["url"], "imageFileKey": uploaded["fileName"], "updatedAt": datetime.utcnow()}},
    )
    return {"success": True, "message": "Course image uploaded successfully!", "url": uploaded["url"]}

@router.delete("/{course_id}/lessons/{lesson_id}")
async def delete_lesson(
    course_id: str,
    lesson_id: str,
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    course = await resolve_course(db, course_id)
    lesson = find_lesson(course, lesson_id)
    if lesson.contentFileKey:
        await storage.delete(lesson.contentFileKey)
    for module in course.modules:
        module.lessons = [l for l in module.lessons if l.id != lesson_id]

    await db.courses.update_one(
        {"id": course.id},
        {"$set": {"modules": [m.model_dump() for m in course.modules], "updatedAt": datetime.utcnow()}},
    )
    # completions of the removed lesson stay in progress records and no longer count
    logger.info(f"Lesson {lesson_id} removed from course {course.id} by {current_user['id']}")
    return {"success": True, "message": "Lesson deleted successfully!", "course": course.model_dump()}

@router.post("/{course_id}/lessons/{lesson_id}/upload-content")
async def upload_lesson_content(
    course_id: str,
    lesson_id: str,
    content: UploadFile = File(...),
    current_user: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    course = await resolve_course(db, course_id)
    lesson = find_lesson(course, lesson_id)
    try:
        uploaded = await storage.upload(await content.read(), content.filename, content.content_type, folder="courses/lessons")
    except StorageError as e:
        raise HTTPException(400, str(e))

    if lesson.contentFileKey:
        await storage.delete(lesson.contentFileKey)
    lesson.contentUrl = uploaded["url"]
    lesson.contentFileKey = uploaded["fileName"]
    lesson.content = None

    await db.courses.update_one(
        {"id": course.id},
        {"$set": {"modules": [m.model_dump() for m in course.modules], "updatedAt": datetime.utcnow()}},
    )
    return {"success": True, "message": "Lesson content uploaded successfully!", "url": uploaded["url"]}
