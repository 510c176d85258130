# routes/certificates.py
from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from database import get_db
from services.course_resolver import resolve_course
from services.certificates import get_certificate, list_certificates, mark_downloaded
from errors import NotFoundError
from .auth import get_current_user

router = APIRouter(prefix="/api/courses", tags=["certificates"])

@router.get("/user/all-certificates")
async def get_all_certificates(current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    certificates = await list_certificates(db, current_user["id"])
    return {"success": True, "certificates": [c.model_dump() for c in certificates]}

@router.get("/{course_id}/certificate")
async def get_course_certificate(course_id: str, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        course = await resolve_course(db, course_id)
    except NotFoundError:
        raise HTTPException(404, "Certificate not found.")
    certificate = await get_certificate(db, current_user["id"], course.id)
    if not certificate:
        raise HTTPException(404, "Certificate not found. Complete the course to earn a certificate!")
    return {"success": True, "certificate": certificate.model_dump()}

@router.post("/{course_id}/certificate/download")
async def download_certificate(course_id: str, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        course = await resolve_course(db, course_id)
    except NotFoundError:
        raise HTTPException(404, "Certificate not found.")
    certificate = await mark_downloaded(db, current_user["id"], course.id)
    return {"success": True, "message": "Certificate downloaded successfully!", "certificate": certificate.model_dump()}
