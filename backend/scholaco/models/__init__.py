"""Pydantic models for the Scholaco API."""

from .application_models import (
    Application,
    ApplicationCard,
    ApplicationCreate,
    ApplicationStatus,
    ApplicationUpdate,
    CalendarEntry,
    ReminderEntry,
    Stats,
    StatusBadge,
    Urgency,
    UserIdentity,
)

__all__ = [
    "Application",
    "ApplicationCard",
    "ApplicationCreate",
    "ApplicationStatus",
    "ApplicationUpdate",
    "CalendarEntry",
    "ReminderEntry",
    "Stats",
    "StatusBadge",
    "Urgency",
    "UserIdentity",
]
