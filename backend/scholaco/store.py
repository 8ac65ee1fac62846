"""Supabase-backed persistence and identity provider.

Wraps the synchronous supabase-py client so every call runs in a worker
thread and never blocks the event loop.  Failures are translated into the
exceptions in :mod:`scholaco.errors`; callers higher up turn them into
:class:`~scholaco.errors.Result` values.

Every read and write against ``applications`` carries an explicit
``eq("user_id", owner_id)`` filter in addition to the row-level security
policy enforced by Supabase.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from scholaco import config
from scholaco.errors import (
    AuthorizationDenied,
    NotFound,
    ScholacoError,
    TransportFailure,
    Unauthenticated,
)
from scholaco.models.application_models import UserIdentity

logger = logging.getLogger(__name__)

APPLICATIONS_TABLE = "applications"
PROFILES_TABLE = "profiles"

# PostgREST / Postgres codes that mean "not yours" or "not there"
_FORBIDDEN_CODES = {"42501", "PGRST301", "PGRST302"}
_NOT_FOUND_CODES = {"PGRST116"}


def create_supabase_client() -> Optional[Client]:
    """Build the Supabase client from configuration, or None when unset."""
    if not (config.SUPABASE_URL and config.SUPABASE_ANON_KEY):
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set - store disabled")
        return None
    return create_client(config.SUPABASE_URL, config.SUPABASE_ANON_KEY)


def to_user_identity(user: Any) -> Optional[UserIdentity]:
    """Convert a supabase-py ``User`` (or a plain dict) to :class:`UserIdentity`."""
    if user is None:
        return None
    if isinstance(user, dict):
        metadata = user.get("user_metadata") or {}
        return UserIdentity(
            id=str(user["id"]),
            email=user.get("email"),
            full_name=metadata.get("full_name"),
        )
    metadata = getattr(user, "user_metadata", None) or {}
    return UserIdentity(
        id=str(user.id),
        email=getattr(user, "email", None),
        full_name=metadata.get("full_name"),
    )


def _translate_api_error(operation: str, exc: APIError) -> ScholacoError:
    code = str(exc.code or "")
    logger.warning("Supabase %s failed: code=%s message=%s", operation, code, exc.message)
    if code in _FORBIDDEN_CODES:
        return AuthorizationDenied(f"{operation} not permitted")
    if code in _NOT_FOUND_CODES:
        return NotFound(f"{operation}: record not found")
    return TransportFailure(f"{operation} failed")


def _translate_auth_error(operation: str, exc: Exception) -> ScholacoError:
    # AuthApiError carries an HTTP status; 4xx means the credentials were refused
    status = getattr(exc, "status", None)
    message = getattr(exc, "message", None) or str(exc)
    if isinstance(status, int) and 400 <= status < 500:
        return Unauthenticated(message)
    logger.error("Supabase auth %s failed: %s", operation, message)
    return TransportFailure(f"{operation} failed")


class SupabaseStore:
    """Application and profile storage plus Supabase Auth."""

    def __init__(self, client: Optional[Client] = None):
        self.client = client

    @property
    def available(self) -> bool:
        return self.client is not None

    def _require_client(self) -> Client:
        if self.client is None:
            raise TransportFailure("Supabase is not configured")
        return self.client

    async def _execute(self, operation: str, fn: Callable[[], Any]) -> Any:
        """Run a blocking PostgREST call in a thread and translate its errors."""
        try:
            return await asyncio.to_thread(fn)
        except APIError as e:
            raise _translate_api_error(operation, e) from e
        except httpx.HTTPError as e:
            logger.error("Supabase %s transport error: %s", operation, e)
            raise TransportFailure(f"{operation} failed") from e

    async def _auth(self, operation: str, fn: Callable[[], Any]) -> Any:
        try:
            return await asyncio.to_thread(fn)
        except ScholacoError:
            raise
        except httpx.HTTPError as e:
            logger.error("Supabase auth %s transport error: %s", operation, e)
            raise TransportFailure(f"{operation} failed") from e
        except Exception as e:
            raise _translate_auth_error(operation, e) from e

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def get_current_user(self) -> Optional[UserIdentity]:
        """Return the user of the persisted session, or None."""
        client = self._require_client()
        try:
            response = await self._auth("get_user", client.auth.get_user)
        except Unauthenticated:
            return None
        if response is None:
            return None
        return to_user_identity(response.user)

    async def sign_in(self, email: str, password: str) -> UserIdentity:
        client = self._require_client()
        response = await self._auth(
            "sign_in",
            lambda: client.auth.sign_in_with_password(
                {"email": email, "password": password}
            ),
        )
        user = to_user_identity(response.user)
        if user is None:
            raise Unauthenticated("Invalid login credentials")
        return user

    async def sign_up(
        self, email: str, password: str, full_name: str
    ) -> Optional[UserIdentity]:
        """Create the auth identity, then the ``profiles`` row.

        The profile insert is a secondary write: when it fails the identity
        is kept and the failure is only logged.
        """
        client = self._require_client()
        response = await self._auth(
            "sign_up",
            lambda: client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": full_name}},
                }
            ),
        )
        user = to_user_identity(response.user)
        if user is None:
            return None

        try:
            await self.insert_profile(
                {"id": user.id, "email": email, "full_name": full_name}
            )
        except ScholacoError as e:
            # TODO: delete the auth user via the admin API so the sign-up can be retried
            logger.error("Profile creation failed for user %s: %s", user.id, e)
        return user

    async def sign_out(self) -> None:
        client = self._require_client()
        await self._auth("sign_out", client.auth.sign_out)

    def on_auth_state_change(self, callback: Callable[[str, Any], Any]) -> Any:
        """Subscribe to Supabase auth events (``SIGNED_IN``, ``SIGNED_OUT`` ...)."""
        client = self._require_client()
        return client.auth.on_auth_state_change(callback)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def insert_profile(self, profile: Dict[str, Any]) -> None:
        client = self._require_client()
        await self._execute(
            "insert profile",
            lambda: client.table(PROFILES_TABLE).insert(profile).execute(),
        )

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        client = self._require_client()
        response = await self._execute(
            "get profile",
            lambda: client.table(PROFILES_TABLE)
            .select("full_name")
            .eq("id", user_id)
            .limit(1)
            .execute(),
        )
        return response.data[0] if response.data else None

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def select_applications(self, owner_id: str) -> List[Dict[str, Any]]:
        client = self._require_client()
        response = await self._execute(
            "list applications",
            lambda: client.table(APPLICATIONS_TABLE)
            .select("*")
            .eq("user_id", owner_id)
            .order("created_at", desc=True)
            .execute(),
        )
        return response.data or []

    async def insert_application(self, row: Dict[str, Any]) -> Dict[str, Any]:
        client = self._require_client()
        response = await self._execute(
            "create application",
            lambda: client.table(APPLICATIONS_TABLE).insert(row).execute(),
        )
        if not response.data:
            raise TransportFailure("create application returned no row")
        return response.data[0]

    async def update_application(
        self, owner_id: str, application_id: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        client = self._require_client()
        response = await self._execute(
            "update application",
            lambda: client.table(APPLICATIONS_TABLE)
            .update(fields)
            .eq("id", application_id)
            .eq("user_id", owner_id)
            .execute(),
        )
        if not response.data:
            # RLS hides foreign rows, so "not yours" and "missing" look the same
            raise NotFound("Application not found")
        return response.data[0]

    async def delete_application(self, owner_id: str, application_id: str) -> None:
        client = self._require_client()
        response = await self._execute(
            "delete application",
            lambda: client.table(APPLICATIONS_TABLE)
            .delete()
            .eq("id", application_id)
            .eq("user_id", owner_id)
            .execute(),
        )
        if not response.data:
            raise NotFound("Application not found")
