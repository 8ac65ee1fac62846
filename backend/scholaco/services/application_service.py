"""Business logic for application tracking.

``ApplicationRepository`` is the only path from the rest of the backend to
the ``applications`` table.  It resolves the signed-in user on every call,
stamps ownership itself, and returns :class:`~scholaco.errors.Result`
values instead of raising.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from scholaco.errors import (
    Result,
    ScholacoError,
    TransportFailure,
    Unauthenticated,
    ValidationFailure,
)
from scholaco.models.application_models import (
    Application,
    ApplicationStatus,
    Stats,
    UserIdentity,
)
from scholaco.store import SupabaseStore

logger = logging.getLogger(__name__)

# Columns callers may write; id, user_id and created_at are owned by the Store
WRITABLE_FIELDS = (
    "name",
    "organization",
    "amount",
    "deadline",
    "status",
    "reminder",
    "notes",
)

_NON_DIGITS = re.compile(r"[^0-9]")


def parse_amount(amount: Optional[str]) -> int:
    """Reduce a free-text amount to the integer formed by its digits.

    Every non-digit character is dropped, including the decimal point, so
    ``"$1,200.50"`` parses as 120050.  Empty or digit-free input is 0.
    """
    digits = _NON_DIGITS.sub("", amount or "")
    return int(digits) if digits else 0


def compute_stats(applications: List[Application]) -> Stats:
    """Aggregate counts and potential awards over a list of applications."""
    return Stats(
        total=len(applications),
        in_progress=sum(
            1 for app in applications if app.status == ApplicationStatus.IN_PROGRESS.value
        ),
        awaiting=sum(
            1 for app in applications if app.status == ApplicationStatus.AWAITING.value
        ),
        potential_awards=sum(parse_amount(app.amount) for app in applications),
    )


def _serialise(value: Any) -> Any:
    if isinstance(value, ApplicationStatus):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _created_at_key(app: Application) -> datetime:
    created = app.created_at
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


class ApplicationRepository:
    """CRUD over the signed-in user's applications."""

    def __init__(
        self,
        store: SupabaseStore,
        current_user: Optional[Callable[[], Awaitable[Optional[UserIdentity]]]] = None,
    ):
        self.store = store
        # Who the caller is; defaults to the Store's persisted session
        self._resolve_user = current_user or store.get_current_user

    async def _current_user(self) -> UserIdentity:
        user = await self._resolve_user()
        if user is None:
            raise Unauthenticated("You must be logged in to manage applications.")
        return user

    @staticmethod
    def _to_application(row: Dict[str, Any]) -> Application:
        try:
            return Application(**row)
        except ValidationError as e:
            logger.error("Malformed application row %s: %s", row.get("id"), e)
            raise TransportFailure("Store returned a malformed application") from e

    # ------------------------------------------------------------------
    # list_for_current_user
    # ------------------------------------------------------------------

    async def list_for_current_user(self) -> Result[List[Application]]:
        """All of the user's applications, newest first.

        The Store is asked to order by ``created_at`` but the list is
        re-sorted here regardless.
        """
        try:
            user = await self._current_user()
            rows = await self.store.select_applications(user.id)
            applications = [self._to_application(row) for row in rows]
        except ScholacoError as e:
            logger.info("Listing applications failed: %s", e)
            return Result.failure(e)

        applications.sort(key=_created_at_key, reverse=True)
        return Result.success(applications)

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    async def create(self, fields: Dict[str, Any]) -> Result[Application]:
        """Insert an application owned by the signed-in user.

        Args:
            fields: Column values; ``user_id``, ``id`` and ``created_at`` in
                the input are ignored.

        Returns:
            Result holding the persisted Application.
        """
        try:
            user = await self._current_user()
            name = (fields.get("name") or "").strip()
            if not name:
                raise ValidationFailure("Application name is required")

            row = {key: _serialise(fields.get(key)) for key in WRITABLE_FIELDS}
            row["name"] = name
            row["status"] = row["status"] or ApplicationStatus.NOT_STARTED.value
            row["user_id"] = user.id

            created = await self.store.insert_application(row)
            application = self._to_application(created)
        except ScholacoError as e:
            logger.warning("Creating application failed: %s", e)
            return Result.failure(e)

        logger.info("Created application %s for user %s", application.id, user.id)
        return Result.success(application)

    # ------------------------------------------------------------------
    # update
    # ------------------------------------------------------------------

    async def update(
        self, application_id: str, partial_fields: Dict[str, Any]
    ) -> Result[Application]:
        """Apply only the supplied fields to one application.

        Ownership is checked by the Store; a row that does not belong to the
        user is indistinguishable from a missing one.
        """
        try:
            user = await self._current_user()
            updates = {
                key: _serialise(value)
                for key, value in partial_fields.items()
                if key in WRITABLE_FIELDS
            }
            if "name" in updates:
                updates["name"] = (updates["name"] or "").strip()
                if not updates["name"]:
                    raise ValidationFailure("Application name cannot be blank")
            # status is not nullable; a null status leaves it unchanged
            if "status" in updates and updates["status"] is None:
                del updates["status"]
            if not updates:
                raise ValidationFailure("No fields to update")

            updated = await self.store.update_application(user.id, application_id, updates)
            application = self._to_application(updated)
        except ScholacoError as e:
            logger.warning("Updating application %s failed: %s", application_id, e)
            return Result.failure(e)

        return Result.success(application)

    # ------------------------------------------------------------------
    # delete
    # ------------------------------------------------------------------

    async def delete(self, application_id: str) -> Result[None]:
        try:
            user = await self._current_user()
            await self.store.delete_application(user.id, application_id)
        except ScholacoError as e:
            logger.warning("Deleting application %s failed: %s", application_id, e)
            return Result.failure(e)

        logger.info("Deleted application %s", application_id)
        return Result.success()

    # ------------------------------------------------------------------
    # compute_stats
    # ------------------------------------------------------------------

    async def compute_stats(self) -> Optional[Stats]:
        """Stats over a fresh fetch of the list, or None if the fetch fails."""
        result = await self.list_for_current_user()
        if not result.ok:
            return None
        return compute_stats(result.data)
