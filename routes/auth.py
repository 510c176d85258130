# routes/auth.py
from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from jose import JWTError, jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta
import logging
import config
from database import get_db
from models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

router = APIRouter(prefix="/api/auth", tags=["auth"])
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login/")

class LoginRequest(BaseModel):
    email: str
    password: str

class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str = ""

def create_access_token(user_id: str, role: str) -> str:
    expire = datetime.utcnow() + timedelta(minutes=config.JWT_EXPIRE_MINUTES)
    return jwt.encode({"id": user_id, "role": role, "exp": expire}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

async def get_current_user(token: str = Depends(oauth2_scheme)):
    """Decode the bearer token into {id, role}. Invalid or expired -> 401."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as e:
        logger.error(f"JWTError: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token")
    user_id = payload.get("id")
    role = payload.get("role")
    if not user_id or not role:
        logger.error("Invalid token: Missing user_id or role")
        raise HTTPException(status_code=401, detail="Invalid token")
    return {"id": user_id, "role": role}

async def require_admin(current_user: dict = Depends(get_current_user)):
    if current_user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return current_user

@router.post("/register", status_code=201)
async def register(request: RegisterRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    if len(request.password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
    try:
        user = User(email=request.email, name=request.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user_dict = user.model_dump()
    user_dict["password"] = pwd_context.hash(request.password)
    try:
        await db.users.insert_one(user_dict)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email already exists")
    logger.info(f"Registered user {user.id}")
    return {
        "success": True,
        "message": "User created successfully",
        "user": {"id": user.id, "email": user.email, "name": user.name, "role": user.role},
    }

@router.post("/login/")
async def login(request: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    logger.info(f"Login attempt for email: {request.email}")
    user = await db.users.find_one({"email": request.email.strip().lower()})
    if not user or not user.get("password") or not pwd_context.verify(request.password, user["password"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(user["id"], user["role"])
    return {
        "success": True,
        "access_token": token,
        "user": {
            "id": user["id"],
            "role": user["role"],
            "name": user.get("name") or user["email"],
            "email": user["email"],
        },
    }

@router.get("/current-user")
async def get_current_user_endpoint(current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await db.users.find_one({"id": current_user["id"]}, {"_id": 0, "password": 0})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {
        "id": user["id"],
        "role": user["role"],
        "name": user.get("name", ""),
        "email": user["email"],
        "enrolledCourses": user.get("enrolledCourses", []),
    }
