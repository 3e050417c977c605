from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from database import users_collection, tasks_collection, notifications_collection
from models.user import UserModel
from realtime.channels import ChannelRouter
from services.task_store import TaskStore
from services.task_events import TaskEventPublisher
from services.assignment_notifier import AssignmentNotifier
from logging_config import get_logger
from config import config

logger = get_logger("auth")

# Config from central config
SECRET_KEY = config.SECRET_KEY
ALGORITHM = config.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = config.ACCESS_TOKEN_EXPIRE_MINUTES

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str) -> Optional[str]:
    """Return the user id carried by a token, or None if it is unusable."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        return None
    user_id = payload.get("sub")
    if user_id is None:
        logger.warning("Token decoded but missing 'sub' claim")
    return user_id

async def get_current_user(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    # Cookie first, then the Authorization header
    token = request.cookies.get("jwt") or bearer
    if not token:
        raise credentials_exception

    user_id = decode_access_token(token)
    if user_id is None:
        raise credentials_exception

    user = await users_collection.find_one({"id": user_id})
    if user is None:
        logger.warning(f"Token valid but user not found in DB", extra={"data": {"user_id": user_id}})
        raise credentials_exception

    return UserModel(**user)


# ─── Service wiring ───────────────────────────────────────────────────────────

def get_channel_router(request: Request) -> ChannelRouter:
    return request.app.state.channel_router

def get_task_store() -> TaskStore:
    return TaskStore(tasks_collection, users_collection)

def get_event_publisher(router: ChannelRouter = Depends(get_channel_router)) -> TaskEventPublisher:
    return TaskEventPublisher(router)

def get_assignment_notifier(router: ChannelRouter = Depends(get_channel_router)) -> AssignmentNotifier:
    return AssignmentNotifier(notifications_collection, router)
