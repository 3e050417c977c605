from fastapi import APIRouter, Body, HTTPException, Depends, Response
from typing import List
from database import users_collection
from models.user import UserModel, RegisterRequest, LoginRequest, ProfileUpdate
from routes.deps import create_access_token, get_current_user
from logging_config import get_logger
from config import config
import bcrypt

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
logger = get_logger("auth")

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], password_hash.encode("utf-8"))


def issue_token(response: Response, user: UserModel) -> str:
    """Mint a JWT and also hand it back as an httpOnly cookie."""
    token = create_access_token(data={"sub": user.id})
    response.set_cookie(
        "jwt",
        token,
        httponly=True,
        secure=config.ENV == "production",
        samesite="none" if config.ENV == "production" else "strict",
        max_age=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return token


@router.post("/register", status_code=201)
async def register(response: Response, payload: RegisterRequest = Body(...)):
    if await users_collection.find_one({"email": payload.email}):
        logger.warning(f"Registration rejected: email in use", extra={"data": {"email": payload.email}})
        raise HTTPException(status_code=400, detail="User already exists")

    user = UserModel(name=payload.name, email=payload.email, password_hash=hash_password(payload.password))
    await users_collection.insert_one(user.model_dump())

    token = issue_token(response, user)
    logger.info(f"User registered", extra={"data": {"user_id": user.id, "email": user.email}})
    return {**user.public(), "token": token}


@router.post("/login")
async def login(response: Response, payload: LoginRequest = Body(...)):
    doc = await users_collection.find_one({"email": payload.email})
    user = UserModel(**doc) if doc else None

    if not user or not user.password_hash or not verify_password(payload.password, user.password_hash):
        logger.warning(f"Login failed", extra={"data": {"email": payload.email}})
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = issue_token(response, user)
    logger.info(f"Login successful", extra={"data": {"user_id": user.id}})
    return {**user.public(), "token": token}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie("jwt")
    return {"message": "Logged out successfully"}


@router.get("/me")
async def me(current_user: UserModel = Depends(get_current_user)):
    return current_user.public()


@router.get("/users", response_model=List[dict])
async def list_users(current_user: UserModel = Depends(get_current_user)):
    """List all users for assignment dropdowns"""
    docs = await users_collection.find({}).to_list(length=None)
    return [UserModel(**d).public() for d in docs]


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate = Body(...),
    current_user: UserModel = Depends(get_current_user),
):
    updates = {}
    if payload.email and payload.email != current_user.email:
        if await users_collection.find_one({"email": payload.email}):
            raise HTTPException(status_code=400, detail="Email already in use")
        updates["email"] = payload.email
    if payload.name:
        updates["name"] = payload.name

    if updates:
        await users_collection.update_one({"id": current_user.id}, {"$set": updates})
        logger.info(f"Profile updated", extra={"data": {"fields": list(updates.keys())}})

    return current_user.model_copy(update=updates).public()
