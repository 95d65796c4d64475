# ========================================
# onboard/routes/user.py
# ========================================

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.errors import DuplicateKeyError

from onboard.database import get_db
from onboard.models.user import User
from onboard.schemas.user import TokenResponse, UserCreate, UserLogin, UserResponse
from onboard.utils.auth import create_access_token, get_current_user
from onboard.utils.ids import serialize_doc
from onboard.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

# ===========================
# PUBLIC ENDPOINTS
# ===========================

# ✅ 1. REGISTER
@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate, db=Depends(get_db)):
    """Register a new job seeker or organization."""

    if await db.users.find_one({"email": user.email}):
        raise HTTPException(status_code=400, detail="Email already registered")

    user_doc = User(
        email=user.email,
        password=get_password_hash(user.password),
        role=user.role,
        personal_info=user.personal_info if user.role == "job_seeker" else None,
        company_info=user.company_info if user.role == "organization" else None,
    ).to_mongo()

    try:
        result = await db.users.insert_one(user_doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email already registered")

    user_doc["_id"] = result.inserted_id
    logger.info("Registered %s %s", user.role, result.inserted_id)
    return serialize_doc(user_doc)


# ✅ 2. LOGIN
@router.post("/login", response_model=TokenResponse)
async def login(user_credentials: UserLogin, db=Depends(get_db)):
    """Login and get JWT access token."""

    user = await db.users.find_one({"email": user_credentials.email})
    if not user or not verify_password(user_credentials.password, user["password"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": user["email"]})
    return {"access_token": access_token, "token_type": "bearer"}


# ===========================
# AUTHENTICATED USER ENDPOINTS
# ===========================

# ✅ 3. GET MY PROFILE
@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: dict = Depends(get_current_user)):
    """Get the current user's profile."""

    return serialize_doc(current_user)
