from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from typing import ClassVar, Optional, Literal
from datetime import datetime
from utils.clock import utcnow, to_naive_utc
import uuid

TaskPriorityValue = Literal['Low', 'Medium', 'High', 'Urgent']
TaskStatusValue = Literal['To Do', 'In Progress', 'Review', 'Completed']


def _blank_to_none(value):
    # Clients send "" to clear an optional reference
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


class TaskModel(BaseModel):
    """Stored task document. Serialized to clients with camelCase keys."""
    # Core Fields
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)

    # State
    priority: TaskPriorityValue = 'Medium'
    status: TaskStatusValue = 'To Do'

    # Ownership
    creator_id: str  # user_id, set once at creation
    assigned_to_id: Optional[str] = None  # user_id

    # Timing
    due_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore"
    )

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, value):
        return to_naive_utc(value) if value is not None else None


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    due_date: Optional[datetime] = None
    priority: TaskPriorityValue
    status: TaskStatusValue = 'To Do'
    assigned_to_id: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    @field_validator("assigned_to_id", "due_date", mode="before")
    @classmethod
    def _clear_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, value):
        return to_naive_utc(value) if value is not None else None


class TaskUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriorityValue] = None
    status: Optional[TaskStatusValue] = None
    assigned_to_id: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    # Fields where an explicit null (or "") means "clear it"
    NULLABLE_FIELDS: ClassVar[tuple] = ("due_date", "assigned_to_id")

    @field_validator("assigned_to_id", "due_date", mode="before")
    @classmethod
    def _clear_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, value):
        return to_naive_utc(value) if value is not None else None

    def changes(self) -> dict:
        """Fields the client actually sent, minus nulls on required fields."""
        sent = self.model_dump(exclude_unset=True)
        return {
            k: v for k, v in sent.items()
            if v is not None or k in self.NULLABLE_FIELDS
        }
