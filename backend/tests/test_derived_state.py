"""
Unit Tests for Derived Application State

Tests the pure view-model functions:
- status_badge: Label/style lookup with fallback
- days_until / urgency_class: Deadline countdown and context thresholds
- calendar_entries / reminder_entries: Filtering, ordering, restartability
- application_card: Display fallbacks on list cards

Usage:
    cd backend && pytest tests/test_derived_state.py -v
"""

from datetime import date, datetime, timedelta, timezone

from conftest import make_application

from scholaco.derived_state import (
    CALENDAR_URGENCY_THRESHOLD,
    LIST_URGENCY_THRESHOLD,
    application_card,
    calendar_days_text,
    calendar_entries,
    calendar_items,
    days_until,
    deadline_text,
    format_awards,
    format_date,
    format_reminder,
    recent_cards,
    reminder_entries,
    status_badge,
    urgency_class,
)
from scholaco.models.application_models import Urgency

TODAY = date(2026, 10, 19)


# ============================================================================
# STATUS BADGE TESTS
# ============================================================================


class TestStatusBadge:
    def test_known_statuses(self):
        assert status_badge("not_started").label == "Not Started"
        assert status_badge("in_progress").label == "In Progress"
        assert status_badge("awaiting").label == "Awaiting Response"

    def test_unknown_status_falls_back_to_not_started(self):
        assert status_badge("archived") == status_badge("not_started")

    def test_missing_status_falls_back_to_not_started(self):
        assert status_badge(None) == status_badge("not_started")


# ============================================================================
# DEADLINE TESTS
# ============================================================================


class TestDaysUntil:
    def test_no_deadline(self):
        assert days_until(None, TODAY) is None

    def test_future_today_and_past(self):
        assert days_until(TODAY + timedelta(days=5), TODAY) == 5
        assert days_until(TODAY, TODAY) == 0
        assert days_until(TODAY - timedelta(days=2), TODAY) == -2

    def test_datetime_is_truncated_to_date(self):
        late_evening = datetime(2026, 10, 20, 23, 59)
        assert days_until(late_evening, TODAY) == 1

    def test_idempotent_for_fixed_inputs(self):
        deadline = TODAY + timedelta(days=12)
        assert days_until(deadline, TODAY) == days_until(deadline, TODAY)


class TestUrgencyClass:
    def test_list_threshold_boundary(self):
        assert urgency_class(3, LIST_URGENCY_THRESHOLD) is Urgency.URGENT
        assert urgency_class(4, LIST_URGENCY_THRESHOLD) is Urgency.NORMAL

    def test_calendar_threshold_boundary(self):
        assert urgency_class(7, CALENDAR_URGENCY_THRESHOLD) is Urgency.URGENT
        assert urgency_class(8, CALENDAR_URGENCY_THRESHOLD) is Urgency.NORMAL

    def test_no_deadline_is_never_urgent(self):
        assert urgency_class(None, CALENDAR_URGENCY_THRESHOLD) is Urgency.NORMAL

    def test_overdue_is_urgent(self):
        assert urgency_class(-1) is Urgency.URGENT


class TestDeadlineText:
    def test_card_text(self):
        assert deadline_text(None) == "No deadline"
        assert deadline_text(-3) == "Overdue"
        assert deadline_text(0) == "Due today"
        assert deadline_text(9) == "Due in 9 days"

    def test_calendar_text(self):
        assert calendar_days_text(-1) == "Overdue"
        assert calendar_days_text(0) == "Due today"
        assert calendar_days_text(4) == "4 days left"

    def test_format_helpers(self):
        assert format_date(date(2026, 3, 7)) == "Mar 7, 2026"
        assert format_date(None) == "No deadline"
        assert format_reminder(datetime(2026, 3, 7, 14, 5)) == "Mar 7, 2026 at 2:05 PM"
        assert format_reminder(datetime(2026, 3, 7, 0, 30)) == "Mar 7, 2026 at 12:30 AM"
        assert format_awards(1750) == "$1,750"


# ============================================================================
# CALENDAR TESTS
# ============================================================================


class TestCalendarEntries:
    def test_excludes_missing_deadlines_and_sorts_ascending(self):
        apps = [
            make_application(app_id="late", deadline=TODAY + timedelta(days=30)),
            make_application(app_id="none", deadline=None),
            make_application(app_id="soon", deadline=TODAY + timedelta(days=2)),
        ]

        entries = list(calendar_entries(apps, TODAY))

        assert [e.application.id for e in entries] == ["soon", "late"]
        assert [e.days_until for e in entries] == [2, 30]

    def test_equal_deadlines_keep_input_order(self):
        deadline = TODAY + timedelta(days=10)
        apps = [
            make_application(app_id="first", deadline=deadline),
            make_application(app_id="second", deadline=deadline),
            make_application(app_id="earlier", deadline=deadline - timedelta(days=1)),
        ]

        ids = [e.application.id for e in calendar_entries(apps, TODAY)]

        assert ids == ["earlier", "first", "second"]

    def test_uses_calendar_threshold(self):
        apps = [
            make_application(app_id="seven", deadline=TODAY + timedelta(days=7)),
            make_application(app_id="eight", deadline=TODAY + timedelta(days=8)),
        ]

        urgency = {e.application.id: e.urgency for e in calendar_entries(apps, TODAY)}

        assert urgency == {"seven": Urgency.URGENT, "eight": Urgency.NORMAL}

    def test_sequence_is_restartable_and_not_cached(self):
        apps = [make_application(app_id="a", deadline=TODAY)]
        entries = calendar_entries(apps, TODAY)

        assert len(list(entries)) == 1
        apps.append(make_application(app_id="b", deadline=TODAY + timedelta(days=1)))
        assert [e.application.id for e in entries] == ["a", "b"]

    def test_calendar_items_carry_display_fields(self):
        apps = [make_application(organization=None, amount=None, deadline=date(2026, 10, 22))]

        item = calendar_items(apps, TODAY)[0]

        assert item.month == "Oct"
        assert item.day == 22
        assert item.days_text == "3 days left"
        assert item.organization == "No organization"
        assert item.amount == "Amount TBD"
        assert item.urgency is Urgency.URGENT


# ============================================================================
# REMINDER TESTS
# ============================================================================


class TestReminderEntries:
    def test_filters_sorts_and_flags_past(self):
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        apps = [
            make_application(app_id="future", reminder=now + timedelta(hours=3)),
            make_application(app_id="no-reminder"),
            make_application(app_id="past", reminder=now - timedelta(days=1)),
        ]

        entries = list(reminder_entries(apps, now))

        assert [(e.application.id, e.is_past) for e in entries] == [
            ("past", True),
            ("future", False),
        ]

    def test_reminder_at_exact_now_is_not_past(self):
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        apps = [make_application(reminder=now)]

        assert list(reminder_entries(apps, now))[0].is_past is False

    def test_naive_reminders_compare_against_naive_now(self):
        now = datetime(2026, 10, 19, 12, 0)
        apps = [make_application(reminder=datetime(2026, 10, 19, 11, 59))]

        assert list(reminder_entries(apps, now))[0].is_past is True


# ============================================================================
# CARD TESTS
# ============================================================================


class TestApplicationCard:
    def test_display_fallbacks(self):
        card = application_card(
            make_application(organization="", amount=None, deadline=None, status="weird"),
            TODAY,
        )

        assert card.organization == "No organization"
        assert card.amount == "Amount TBD"
        assert card.deadline_text == "No deadline"
        assert card.urgency is Urgency.NORMAL
        assert card.badge.label == "Not Started"

    def test_list_threshold_applies_to_cards(self):
        near = application_card(make_application(deadline=TODAY + timedelta(days=3)), TODAY)
        far = application_card(make_application(deadline=TODAY + timedelta(days=4)), TODAY)

        assert near.urgency is Urgency.URGENT
        assert far.urgency is Urgency.NORMAL
        assert near.deadline_text == "Due in 3 days"

    def test_recent_cards_limited_to_five(self):
        apps = [make_application(name=f"App {i}") for i in range(8)]

        recent = recent_cards(apps, TODAY)

        assert [c.name for c in recent] == [f"App {i}" for i in range(5)]
