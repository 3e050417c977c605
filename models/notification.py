from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from constants import NotificationTypes
from utils.clock import utcnow
import uuid


class NotificationModel(BaseModel):
    """In-app notification created when a task is assigned to someone."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    recipient_id: str  # Who receives the notification
    sender_id: Optional[str] = None  # None for system-generated notifications
    type: str = NotificationTypes.TASK_ASSIGNED

    # Content
    message: str

    # Reference
    related_task_id: Optional[str] = None

    # State
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore"
    )
