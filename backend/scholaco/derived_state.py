"""
Derived State for Application Views

Pure functions that turn application records into render-ready view-model
fragments: status badges, deadline countdowns and urgency, calendar and
reminder groupings, and dashboard cards.  Nothing here performs I/O; the
current date and time are taken as optional arguments so results are
deterministic under test.

Urgency thresholds depend on where the deadline is shown:
- List/card views: urgent at 3 days or fewer
- Calendar view: urgent at 7 days or fewer
"""

from datetime import date, datetime
from typing import Callable, Iterable, Iterator, List, Optional, TypeVar

from scholaco.models.application_models import (
    Application,
    ApplicationCard,
    ApplicationStatus,
    CalendarEntry,
    CalendarItem,
    ReminderEntry,
    ReminderItem,
    StatusBadge,
    Urgency,
)

T = TypeVar("T")


# ============================================================================
# DISPLAY CONFIGURATION
# ============================================================================

LIST_URGENCY_THRESHOLD = 3
CALENDAR_URGENCY_THRESHOLD = 7

RECENT_APPLICATIONS_LIMIT = 5

STATUS_BADGES = {
    ApplicationStatus.NOT_STARTED.value: StatusBadge(
        label="Not Started", style_class="badge-not-started"
    ),
    ApplicationStatus.IN_PROGRESS.value: StatusBadge(
        label="In Progress", style_class="badge-in-progress"
    ),
    ApplicationStatus.AWAITING.value: StatusBadge(
        label="Awaiting Response", style_class="badge-awaiting"
    ),
}

NO_DEADLINE_TEXT = "No deadline"
NO_ORGANIZATION_TEXT = "No organization"
AMOUNT_TBD_TEXT = "Amount TBD"


# ============================================================================
# SEQUENCES
# ============================================================================


class EntrySequence(Iterable[T]):
    """Lazy view that rebuilds its entries every time it is iterated.

    Nothing is cached between iterations; each pass re-filters and re-sorts
    the application list it was given.
    """

    def __init__(self, build: Callable[[], Iterator[T]]):
        self._build = build

    def __iter__(self) -> Iterator[T]:
        return self._build()


# ============================================================================
# STATUS AND DEADLINES
# ============================================================================


def status_badge(status: Optional[str]) -> StatusBadge:
    """Badge for a status; unknown values fall back to "Not Started"."""
    return STATUS_BADGES.get(
        status or "", STATUS_BADGES[ApplicationStatus.NOT_STARTED.value]
    )


def days_until(deadline: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """
    Whole calendar days from today to the deadline.

    Both ends are midnight-normalised local dates, so the result is the
    ceiling of the remaining time in days.

    Args:
        deadline: Deadline date (datetimes are truncated to their date)
        today: Override for the current local date

    Returns:
        None when there is no deadline; negative when overdue; 0 when due today
    """
    if deadline is None:
        return None
    if isinstance(deadline, datetime):
        deadline = deadline.date()
    today = today or date.today()
    return (deadline - today).days


def urgency_class(days: Optional[int], threshold: int = LIST_URGENCY_THRESHOLD) -> Urgency:
    """URGENT when a deadline exists and is at most ``threshold`` days away."""
    if days is not None and days <= threshold:
        return Urgency.URGENT
    return Urgency.NORMAL


def deadline_text(days: Optional[int]) -> str:
    """Countdown text used on application cards."""
    if days is None:
        return NO_DEADLINE_TEXT
    if days < 0:
        return "Overdue"
    if days == 0:
        return "Due today"
    return f"Due in {days} days"


def calendar_days_text(days: int) -> str:
    """Countdown text used in the calendar view."""
    if days < 0:
        return "Overdue"
    if days == 0:
        return "Due today"
    return f"{days} days left"


def format_date(value: Optional[date]) -> str:
    """Format like ``Oct 19, 2026``."""
    if value is None:
        return NO_DEADLINE_TEXT
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_reminder(value: datetime) -> str:
    """Format like ``Oct 19, 2026 at 9:05 AM``."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{format_date(value.date())} at {hour}:{value.minute:02d} {meridiem}"


def format_awards(total: int) -> str:
    """Potential awards with thousands separators, e.g. ``$1,750``."""
    return f"${total:,}"


# ============================================================================
# GROUPINGS
# ============================================================================


def _is_past(reminder: datetime, now: Optional[datetime]) -> bool:
    if now is None:
        now = datetime.now(reminder.tzinfo) if reminder.tzinfo else datetime.now()
    elif reminder.tzinfo is None and now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    elif reminder.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone()
    return reminder < now


def calendar_entries(
    applications: List[Application],
    today: Optional[date] = None,
    threshold: int = CALENDAR_URGENCY_THRESHOLD,
) -> EntrySequence[CalendarEntry]:
    """Applications with a deadline, soonest first (ties keep input order)."""

    def build() -> Iterator[CalendarEntry]:
        dated = sorted(
            (app for app in applications if app.deadline is not None),
            key=lambda app: app.deadline,
        )
        for app in dated:
            days = days_until(app.deadline, today)
            yield CalendarEntry(
                application=app,
                days_until=days,
                urgency=urgency_class(days, threshold),
            )

    return EntrySequence(build)


def reminder_entries(
    applications: List[Application], now: Optional[datetime] = None
) -> EntrySequence[ReminderEntry]:
    """Applications with a reminder, earliest first, flagged when already past."""

    def build() -> Iterator[ReminderEntry]:
        reminded = sorted(
            (app for app in applications if app.reminder is not None),
            key=lambda app: _sort_instant(app.reminder),
        )
        for app in reminded:
            yield ReminderEntry(application=app, is_past=_is_past(app.reminder, now))

    return EntrySequence(build)


def _sort_instant(value: datetime) -> datetime:
    # Mixed naive/aware values cannot be compared; naive means local time
    return value if value.tzinfo else value.astimezone()


# ============================================================================
# VIEW-MODELS
# ============================================================================


def application_card(
    app: Application,
    today: Optional[date] = None,
    threshold: int = LIST_URGENCY_THRESHOLD,
) -> ApplicationCard:
    days = days_until(app.deadline, today)
    return ApplicationCard(
        id=app.id,
        name=app.name,
        organization=app.organization or NO_ORGANIZATION_TEXT,
        amount=app.amount or AMOUNT_TBD_TEXT,
        status=app.status,
        badge=status_badge(app.status),
        days_until=days,
        deadline_text=deadline_text(days),
        urgency=urgency_class(days, threshold),
    )


def application_cards(
    applications: List[Application], today: Optional[date] = None
) -> List[ApplicationCard]:
    return [application_card(app, today) for app in applications]


def recent_cards(
    applications: List[Application],
    today: Optional[date] = None,
    limit: int = RECENT_APPLICATIONS_LIMIT,
) -> List[ApplicationCard]:
    """Cards for the newest ``limit`` applications (input is newest first)."""
    return application_cards(applications[:limit], today)


def calendar_items(
    applications: List[Application], today: Optional[date] = None
) -> List[CalendarItem]:
    items = []
    for entry in calendar_entries(applications, today):
        app = entry.application
        items.append(
            CalendarItem(
                id=app.id,
                name=app.name,
                organization=app.organization or NO_ORGANIZATION_TEXT,
                amount=app.amount or AMOUNT_TBD_TEXT,
                deadline=app.deadline,
                month=app.deadline.strftime("%b"),
                day=app.deadline.day,
                days_until=entry.days_until,
                days_text=calendar_days_text(entry.days_until),
                urgency=entry.urgency,
            )
        )
    return items


def reminder_items(
    applications: List[Application], now: Optional[datetime] = None
) -> List[ReminderItem]:
    return [
        ReminderItem(
            id=entry.application.id,
            name=entry.application.name,
            reminder=entry.application.reminder,
            reminder_text=format_reminder(entry.application.reminder),
            is_past=entry.is_past,
        )
        for entry in reminder_entries(applications, now)
    ]
