"""Session lifecycle and user actions for one signed-in user.

A single :class:`SessionController` is created per process (see
``main.lifespan``).  It owns everything that used to be page-level state:
the current user, their applications and stats, the greeting name, the
application being edited, per-operation pending state and the two-phase
delete confirmation.

States:
- ``anonymous``: no user; application list empty
- ``authenticated``: user resolved; list and stats refreshed after every
  successful mutation (local state is never patched incrementally)
"""

import asyncio
import concurrent.futures
import logging
import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from scholaco import config
from scholaco.brevo_service import BrevoService
from scholaco.derived_state import calendar_entries
from scholaco.errors import NotFound, Result, ScholacoError, Unauthenticated
from scholaco.models.application_models import (
    Application,
    ApplicationStatus,
    EmailIntegration,
    Stats,
    Urgency,
    UserIdentity,
)
from scholaco.services.application_service import ApplicationRepository, compute_stats
from scholaco.store import SupabaseStore, to_user_identity

logger = logging.getLogger(__name__)


def _log_event_failure(future: concurrent.futures.Future) -> None:
    if future.cancelled():
        return
    if (exc := future.exception()) is not None:
        logger.error("Handling auth event failed: %s", exc, exc_info=exc)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class OperationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"
    ERROR = "error"


@dataclass
class OperationState:
    """Progress of one user action, for the presentation layer to render."""

    status: OperationStatus = OperationStatus.IDLE
    message: Optional[str] = None


class ConfirmState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    EXECUTED = "executed"


def first_name(full_name: Optional[str]) -> Optional[str]:
    """First whitespace-delimited token of a full name, or None."""
    parts = (full_name or "").split()
    return parts[0] if parts else None


class DeleteConfirmation:
    """Two-press delete guard.

    The first trigger for a key arms it.  A second trigger within
    ``window`` seconds reports EXECUTED and disarms; once the window has
    elapsed the key is idle again and the next trigger re-arms it.
    """

    def __init__(
        self,
        window: float = config.DELETE_CONFIRM_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self._clock = clock
        self._armed_at: Dict[str, float] = {}

    def state(self, key: str) -> ConfirmState:
        armed_at = self._armed_at.get(key)
        if armed_at is None:
            return ConfirmState.IDLE
        if self._clock() - armed_at >= self.window:
            del self._armed_at[key]
            return ConfirmState.IDLE
        return ConfirmState.ARMED

    def trigger(self, key: str) -> ConfirmState:
        if self.state(key) is ConfirmState.ARMED:
            del self._armed_at[key]
            return ConfirmState.EXECUTED
        self._armed_at[key] = self._clock()
        return ConfirmState.ARMED

    def reset(self) -> None:
        self._armed_at.clear()


EMAIL_INTEGRATIONS = (
    ("gmail", "Gmail"),
    ("outlook", "Outlook"),
    ("yahoo", "Yahoo Mail"),
    ("imap", "IMAP/SMTP"),
)


class SessionController:
    """Holds the signed-in user's state and performs their actions."""

    def __init__(
        self,
        store: SupabaseStore,
        repository: Optional[ApplicationRepository] = None,
        notifier: Optional[BrevoService] = None,
        delete_confirmation: Optional[DeleteConfirmation] = None,
    ):
        self.store = store
        # The controller, not the Store's cached session, decides who is signed in
        self.repository = repository or ApplicationRepository(
            store, current_user=self._session_user
        )
        self.notifier = notifier or BrevoService()
        self.delete_confirmation = delete_confirmation or DeleteConfirmation()

        self.user: Optional[UserIdentity] = None
        self.applications: List[Application] = []
        self.stats: Optional[Stats] = None
        self.greeting_name: Optional[str] = None
        self.editing: Optional[Application] = None
        self.operations: Dict[str, OperationState] = {}

    @property
    def state(self) -> SessionState:
        return SessionState.AUTHENTICATED if self.user else SessionState.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> SessionState:
        """Resolve a persisted session, if any."""
        try:
            user = await self.store.get_current_user()
        except ScholacoError as e:
            logger.error("Initial identity check failed: %s", e)
            user = None

        if user:
            await self._enter_authenticated(user)
        else:
            self._enter_anonymous()
        logger.info("Session initialised: %s", self.state.value)
        return self.state

    def subscribe(self, loop: asyncio.AbstractEventLoop) -> Any:
        """Forward Supabase auth events onto ``loop``.

        supabase-py invokes the callback from whichever thread made the auth
        call, so events are marshalled back to the event loop.
        """

        def _callback(event: str, session: Any) -> concurrent.futures.Future:
            future = asyncio.run_coroutine_threadsafe(
                self.handle_auth_event(event, session), loop
            )
            future.add_done_callback(_log_event_failure)
            return future

        return self.store.on_auth_state_change(_callback)

    async def handle_auth_event(self, event: str, session: Any) -> None:
        """React to an external ``SIGNED_IN`` / ``SIGNED_OUT`` event."""
        event = str(getattr(event, "value", event))
        if event == "SIGNED_IN":
            user = to_user_identity(getattr(session, "user", None))
            if user is None:
                return
            if self.user and self.user.id == user.id:
                return
            await self._enter_authenticated(user)
        elif event == "SIGNED_OUT":
            self._enter_anonymous()

    async def _session_user(self) -> Optional[UserIdentity]:
        return self.user

    async def _enter_authenticated(self, user: UserIdentity) -> None:
        if self.user and self.user.id != user.id:
            self._enter_anonymous()
        self.user = user
        await self.refresh()
        await self._load_greeting()

    def _enter_anonymous(self) -> None:
        self.user = None
        self.applications = []
        self.stats = None
        self.greeting_name = None
        self.editing = None
        self.delete_confirmation.reset()

    async def _load_greeting(self) -> None:
        if self.user is None:
            return
        try:
            profile = await self.store.get_profile(self.user.id)
        except ScholacoError as e:
            logger.error("Error fetching user profile: %s", e)
            self.greeting_name = None
            return
        self.greeting_name = first_name(profile.get("full_name") if profile else None)

    async def refresh(self) -> Result[List[Application]]:
        """Re-fetch the full list and recompute stats from it."""
        result = await self.repository.list_for_current_user()
        if result.ok:
            self.applications = result.data
            self.stats = compute_stats(self.applications)
        elif isinstance(result.error, Unauthenticated):
            self._enter_anonymous()
        else:
            logger.error("Error loading applications: %s", result.error)
        return result

    # ------------------------------------------------------------------
    # Operation state
    # ------------------------------------------------------------------

    def _begin(self, operation: str) -> None:
        self.operations[operation] = OperationState(OperationStatus.PENDING)

    def _finish(self, operation: str, result: Result, success_message: str, failure_message: str) -> None:
        if result.ok:
            self.operations[operation] = OperationState(OperationStatus.SETTLED, success_message)
        else:
            self.operations[operation] = OperationState(OperationStatus.ERROR, failure_message)

    def operation(self, name: str) -> OperationState:
        return self.operations.get(name, OperationState())

    # ------------------------------------------------------------------
    # Authentication actions
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Result[UserIdentity]:
        self._begin("sign_in")
        try:
            user = await self.store.sign_in(email, password)
        except ScholacoError as e:
            self.operations["sign_in"] = OperationState(OperationStatus.ERROR, e.message)
            return Result.failure(e)

        await self._enter_authenticated(user)
        self.operations["sign_in"] = OperationState(OperationStatus.SETTLED, "Welcome back!")
        return Result.success(user)

    async def sign_up(
        self, first: str, last: str, email: str, password: str
    ) -> Result[Optional[UserIdentity]]:
        """Register, send the welcome email, and sign in if a session exists.

        A failed welcome email is logged and does not fail the sign-up.
        """
        self._begin("sign_up")
        full_name = f"{first} {last}".strip()
        try:
            user = await self.store.sign_up(email, password, full_name)
        except ScholacoError as e:
            self.operations["sign_up"] = OperationState(OperationStatus.ERROR, e.message)
            return Result.failure(e)

        sent = await self.notifier.send_welcome_email(email, full_name)
        if not sent.ok:
            logger.warning("Welcome email to %s failed: %s", email, sent.error)

        # Projects requiring email confirmation return no session here
        try:
            current = await self.store.get_current_user()
        except ScholacoError as e:
            logger.warning("Session check after sign-up failed: %s", e)
            current = None
        if current:
            await self._enter_authenticated(current)

        self.operations["sign_up"] = OperationState(
            OperationStatus.SETTLED, "Account created successfully!"
        )
        return Result.success(user)

    async def sign_out(self) -> Result[None]:
        self._begin("sign_out")
        result: Result[None] = Result.success()
        try:
            await self.store.sign_out()
        except ScholacoError as e:
            logger.error("Sign-out failed at the provider: %s", e)
            result = Result.failure(e)

        # Local state is discarded even if the provider call failed
        self._enter_anonymous()
        self._finish("sign_out", result, "Signed out successfully", "Sign-out failed")
        return result

    # ------------------------------------------------------------------
    # Application actions
    # ------------------------------------------------------------------

    def find(self, application_id: str) -> Optional[Application]:
        return next((app for app in self.applications if app.id == application_id), None)

    async def add_application(self, fields: Dict[str, Any]) -> Result[Application]:
        self._begin("add")
        result = await self.repository.create(fields)
        if result.ok:
            await self.refresh()
        self._finish("add", result, "Application added successfully!", "Failed to add application")
        return result

    def begin_edit(self, application_id: str) -> Optional[Application]:
        """Mark an application as being edited and return it."""
        self.editing = self.find(application_id)
        return self.editing

    def cancel_edit(self) -> None:
        self.editing = None

    async def save_application(
        self, updates: Dict[str, Any], application_id: Optional[str] = None
    ) -> Result[Application]:
        """Persist an edit.

        Moving an application into ``awaiting`` sends the submission
        confirmation email; a failed send is only logged.
        """
        self._begin("save")
        target_id = application_id or (self.editing.id if self.editing else None)
        if target_id is None:
            result: Result[Application] = Result.failure(NotFound("No application is being edited"))
            self._finish("save", result, "", "Failed to update application")
            return result

        previous = self.find(target_id)
        result = await self.repository.update(target_id, updates)
        if result.ok:
            self.editing = None
            await self.refresh()
            became_awaiting = result.data.status == ApplicationStatus.AWAITING.value and (
                previous is None or previous.status != ApplicationStatus.AWAITING.value
            )
            if became_awaiting:
                await self._notify_submitted(result.data)
        self._finish("save", result, "Application updated successfully!", "Failed to update application")
        return result

    async def _notify_submitted(self, application: Application) -> None:
        if not (self.user and self.user.email):
            return
        sent = await self.notifier.send_application_submitted(self.user.email, application.name)
        if not sent.ok:
            logger.warning("Submission email for %s failed: %s", application.id, sent.error)

    async def request_delete(self, application_id: str) -> Tuple[ConfirmState, Optional[Result[None]]]:
        """One press of the delete button.

        Returns the confirmation state and, when the press executed the
        delete, the repository result.
        """
        state = self.delete_confirmation.trigger(application_id)
        if state is not ConfirmState.EXECUTED:
            return state, None

        self._begin("delete")
        result = await self.repository.delete(application_id)
        if result.ok:
            if self.editing and self.editing.id == application_id:
                self.editing = None
            await self.refresh()
        self._finish("delete", result, "Application deleted", "Failed to delete application")
        return state, result

    async def clear_reminder(self, application_id: str) -> Result[Application]:
        self._begin("clear_reminder")
        result = await self.repository.update(application_id, {"reminder": None})
        if result.ok:
            await self.refresh()
        self._finish("clear_reminder", result, "Reminder dismissed", "Failed to clear reminder")
        return result

    async def send_deadline_reminders(self, today: Optional[date] = None) -> int:
        """Email the user about every deadline inside the calendar urgency window.

        Overdue applications are skipped.  Individual send failures are
        logged and skipped.

        Returns:
            Number of reminder emails accepted by the provider.
        """
        if not (self.user and self.user.email):
            return 0

        sent_count = 0
        for entry in calendar_entries(self.applications, today):
            if entry.days_until < 0 or entry.urgency is not Urgency.URGENT:
                continue
            app = entry.application
            sent = await self.notifier.send_deadline_reminder(
                self.user.email, app.name, app.organization, app.deadline, entry.days_until
            )
            if sent.ok:
                sent_count += 1
            else:
                logger.warning("Deadline reminder for %s failed: %s", app.id, sent.error)
        return sent_count

    @staticmethod
    def email_integrations() -> List[EmailIntegration]:
        """Inbox integrations shown in settings; none are implemented yet."""
        return [
            EmailIntegration(
                provider=provider,
                label=label,
                available=False,
                message=f"{label} integration coming soon! For now, you can manually check your emails.",
            )
            for provider, label in EMAIL_INTEGRATIONS
        ]
