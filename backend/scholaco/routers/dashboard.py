"""Dashboard router: read-only view-models built from the controller state."""

import logging
from typing import List

from fastapi import APIRouter, Depends

from scholaco import derived_state
from scholaco.deps import get_controller, require_session
from scholaco.models.application_models import (
    CalendarItem,
    DashboardResponse,
    EmailIntegration,
    ReminderItem,
)
from scholaco.session import SessionController

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(controller: SessionController = Depends(require_session)):
    """Greeting, stats, the five newest cards, and every card."""
    await controller.refresh()
    stats = controller.stats
    return DashboardResponse(
        greeting_name=controller.greeting_name,
        stats=stats,
        potential_awards_display=derived_state.format_awards(
            stats.potential_awards if stats else 0
        ),
        recent_applications=derived_state.recent_cards(controller.applications),
        applications=derived_state.application_cards(controller.applications),
    )


@router.get("/calendar", response_model=List[CalendarItem])
async def get_calendar(controller: SessionController = Depends(require_session)):
    return derived_state.calendar_items(controller.applications)


@router.get("/reminders", response_model=List[ReminderItem])
async def get_reminders(controller: SessionController = Depends(require_session)):
    return derived_state.reminder_items(controller.applications)


@router.post("/reminders/send")
async def send_deadline_reminders(
    controller: SessionController = Depends(require_session),
):
    """Email the user about deadlines due within the calendar window."""
    sent = await controller.send_deadline_reminders()
    logger.info("Sent %d deadline reminder(s)", sent)
    return {"sent": sent}


@router.get("/integrations/email", response_model=List[EmailIntegration])
async def list_email_integrations(
    controller: SessionController = Depends(get_controller),
):
    return controller.email_integrations()
