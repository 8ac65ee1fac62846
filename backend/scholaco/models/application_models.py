"""Pydantic schemas for applications, stats and dashboard view-models."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ApplicationStatus(str, Enum):
    """Lifecycle status of a tracked application."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    AWAITING = "awaiting"


class Urgency(str, Enum):
    """Coarse deadline proximity classification."""

    URGENT = "urgent"
    NORMAL = "normal"


# Optional form fields that arrive as "" when left blank
_BLANKABLE_FIELDS = ("organization", "amount", "deadline", "reminder", "notes")


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Application(BaseModel):
    """A persisted application row (mirrors the ``applications`` table)."""

    id: str
    user_id: str
    name: str
    organization: Optional[str] = None
    amount: Optional[str] = None
    deadline: Optional[date] = None
    # Kept as a plain string so unknown values from the database still load
    status: str = ApplicationStatus.NOT_STARTED.value
    reminder: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("deadline", "reminder", mode="before")
    @classmethod
    def _empty_dates(cls, value):
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value):
        return value or ApplicationStatus.NOT_STARTED.value


class ApplicationCreate(BaseModel):
    """Request body for adding an application."""

    name: str = Field(..., min_length=1, max_length=500, description="Scholarship name")
    organization: Optional[str] = Field(None, max_length=500)
    amount: Optional[str] = Field(None, max_length=100, description="Free-text award amount")
    deadline: Optional[date] = None
    status: ApplicationStatus = ApplicationStatus.NOT_STARTED
    reminder: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=10000)

    @field_validator(*_BLANKABLE_FIELDS, mode="before")
    @classmethod
    def _blank_fields(cls, value):
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status(cls, value):
        return value or ApplicationStatus.NOT_STARTED


class ApplicationUpdate(BaseModel):
    """Request body for editing an application. All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=500)
    organization: Optional[str] = Field(None, max_length=500)
    amount: Optional[str] = Field(None, max_length=100)
    deadline: Optional[date] = None
    status: Optional[ApplicationStatus] = None
    reminder: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=10000)

    @field_validator(*_BLANKABLE_FIELDS, mode="before")
    @classmethod
    def _blank_fields(cls, value):
        return _blank_to_none(value)


class Stats(BaseModel):
    """Aggregate statistics over the current user's applications."""

    total: int = 0
    in_progress: int = 0
    awaiting: int = 0
    potential_awards: int = 0


class UserIdentity(BaseModel):
    """The authenticated user as reported by Supabase Auth."""

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


# ---------------------------------------------------------------------------
# View-model fragments
# ---------------------------------------------------------------------------


class StatusBadge(BaseModel):
    label: str
    style_class: str


class ApplicationCard(BaseModel):
    """Render-ready card for the application lists."""

    id: str
    name: str
    organization: str
    amount: str
    status: str
    badge: StatusBadge
    days_until: Optional[int] = None
    deadline_text: str
    urgency: Urgency


class CalendarEntry(BaseModel):
    application: Application
    days_until: int
    urgency: Urgency


class ReminderEntry(BaseModel):
    application: Application
    is_past: bool


class DashboardResponse(BaseModel):
    """Everything the dashboard page needs in one payload."""

    greeting_name: Optional[str] = None
    stats: Optional[Stats] = None
    potential_awards_display: str = "$0"
    recent_applications: List[ApplicationCard] = Field(default_factory=list)
    applications: List[ApplicationCard] = Field(default_factory=list)


class CalendarItem(BaseModel):
    """Calendar row with display strings."""

    id: str
    name: str
    organization: str
    amount: str
    deadline: date
    month: str
    day: int
    days_until: int
    days_text: str
    urgency: Urgency


class ReminderItem(BaseModel):
    id: str
    name: str
    reminder: datetime
    reminder_text: str
    is_past: bool


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class SignUpRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6)


class SessionResponse(BaseModel):
    authenticated: bool
    user: Optional[UserIdentity] = None
    greeting_name: Optional[str] = None


class DeleteResponse(BaseModel):
    """Outcome of one press of the two-phase delete button."""

    state: str
    deleted: bool = False


class OperationStateResponse(BaseModel):
    operation: str
    state: str
    message: Optional[str] = None


class EmailIntegration(BaseModel):
    provider: str
    label: str
    available: bool = False
    message: str
