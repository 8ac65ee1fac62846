"""
Shared fixtures and in-memory Supabase fakes for the Scholaco tests.

``FakeSupabaseClient`` mimics the parts of supabase-py the store uses:
chainable ``table(...)`` queries and the ``auth`` namespace.
"""

import os
import sys
import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
from postgrest.exceptions import APIError

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from scholaco.errors import Result, TransportFailure
from scholaco.models.application_models import Application
from scholaco.session import DeleteConfirmation, SessionController
from scholaco.store import SupabaseStore


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================

BASE_TIME = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


def generate_uuid() -> str:
    return str(uuid.uuid4())


def make_application(
    app_id: Optional[str] = None,
    user_id: str = "user-1",
    name: str = "Test Scholarship",
    organization: Optional[str] = "Test Foundation",
    amount: Optional[str] = "$1,000",
    deadline: Optional[date] = None,
    status: str = "not_started",
    reminder: Optional[datetime] = None,
    notes: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Application:
    """Factory function to create an Application."""
    return Application(
        id=app_id or generate_uuid(),
        user_id=user_id,
        name=name,
        organization=organization,
        amount=amount,
        deadline=deadline,
        status=status,
        reminder=reminder,
        notes=notes,
        created_at=created_at or BASE_TIME,
    )


# ============================================================================
# FAKE SUPABASE CLIENT
# ============================================================================


class FakeResponse:
    def __init__(self, data: Optional[List[Dict]] = None):
        self.data = data if data is not None else []


class FakeQuery:
    """Chainable query builder over an in-memory table."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._filters: List[tuple] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._mode = "select"
        self._payload: Any = None

    def select(self, *args, **kwargs):
        self._mode = "select"
        return self

    def insert(self, payload):
        self._mode = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._mode = "update"
        self._payload = payload
        return self

    def delete(self):
        self._mode = "delete"
        return self

    def eq(self, field: str, value: Any):
        self._filters.append((field, value))
        return self

    def order(self, field: str, desc: bool = False):
        self._order = (field, desc)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def _matches(self, row: Dict) -> bool:
        return all(row.get(field) == value for field, value in self._filters)

    def execute(self):
        self._client.calls.append((self._table, self._mode, list(self._filters)))
        if failure := self._client.failures.get((self._table, self._mode)):
            raise failure

        rows = self._client.tables.setdefault(self._table, [])

        if self._mode == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for payload in payloads:
                row = dict(payload)
                if self._table == "applications":
                    row.setdefault("id", generate_uuid())
                    row["created_at"] = self._client.next_timestamp()
                rows.append(row)
                inserted.append(dict(row))
            return FakeResponse(inserted)

        matched = [row for row in rows if self._matches(row)]

        if self._mode == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResponse([dict(row) for row in matched])

        if self._mode == "delete":
            self._client.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResponse([dict(row) for row in matched])

        if self._order:
            field, desc = self._order
            matched = sorted(matched, key=lambda r: r.get(field) or "", reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse([dict(row) for row in matched])


class FakeAuthApiError(Exception):
    """Stand-in for supabase-py's AuthApiError (carries an HTTP status)."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.current: Optional[Dict[str, Any]] = None
        self.callbacks: List[Callable] = []
        self.callback_results: List[Any] = []
        self.auto_confirm = True

    def _user_obj(self, record: Dict[str, Any]):
        return SimpleNamespace(
            id=record["id"],
            email=record["email"],
            user_metadata=record.get("user_metadata", {}),
        )

    def _emit(self, event: str):
        session = SimpleNamespace(user=self._user_obj(self.current)) if self.current else None
        for callback in self.callbacks:
            self.callback_results.append(callback(event, session))

    def add_user(self, email: str, password: str, full_name: str = "", user_id: str = None):
        record = {
            "id": user_id or generate_uuid(),
            "email": email,
            "password": password,
            "user_metadata": {"full_name": full_name},
        }
        self.users[email] = record
        return record

    def get_user(self, jwt=None):
        if self.current is None:
            return None
        return SimpleNamespace(user=self._user_obj(self.current))

    def sign_in_with_password(self, credentials: Dict[str, str]):
        record = self.users.get(credentials["email"])
        if record is None or record["password"] != credentials["password"]:
            raise FakeAuthApiError("Invalid login credentials", status=400)
        self.current = record
        self._emit("SIGNED_IN")
        user = self._user_obj(record)
        return SimpleNamespace(user=user, session=SimpleNamespace(user=user))

    def sign_up(self, credentials: Dict[str, Any]):
        if credentials["email"] in self.users:
            raise FakeAuthApiError("User already registered", status=422)
        full_name = credentials.get("options", {}).get("data", {}).get("full_name", "")
        record = self.add_user(credentials["email"], credentials["password"], full_name)
        user = self._user_obj(record)
        session = None
        if self.auto_confirm:
            self.current = record
            session = SimpleNamespace(user=user)
            self._emit("SIGNED_IN")
        return SimpleNamespace(user=user, session=session)

    def sign_out(self):
        self.current = None
        self._emit("SIGNED_OUT")

    def on_auth_state_change(self, callback: Callable):
        self.callbacks.append(callback)
        return SimpleNamespace(unsubscribe=lambda: self.callbacks.remove(callback))


class FakeSupabaseClient:
    """In-memory replacement for ``supabase.Client``."""

    def __init__(self):
        self.tables: Dict[str, List[Dict]] = {"applications": [], "profiles": []}
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[tuple] = []
        self.auth = FakeAuth()
        self._clock = BASE_TIME

    def next_timestamp(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, mode: str, code: str = "XX000", message: str = "boom"):
        self.failures[(table, mode)] = APIError({"message": message, "code": code, "hint": None, "details": None})


# ============================================================================
# FAKE NOTIFIER
# ============================================================================


class FakeNotifier:
    """Records every email instead of calling Brevo."""

    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    def is_available(self) -> bool:
        return True

    def _result(self, kind: str, **fields):
        if self.fail:
            return Result.failure(TransportFailure("Email provider unreachable"))
        self.sent.append({"kind": kind, **fields})
        return Result.success({"messageId": generate_uuid()})

    async def send_welcome_email(self, user_email, user_name):
        return self._result("welcome", to=user_email, name=user_name)

    async def send_deadline_reminder(self, user_email, app_name, organization, deadline, days_left):
        return self._result(
            "deadline_reminder", to=user_email, app_name=app_name, days_left=days_left
        )

    async def send_application_submitted(self, user_email, app_name):
        return self._result("application_submitted", to=user_email, app_name=app_name)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def supabase_client():
    client = FakeSupabaseClient()
    client.auth.add_user("ada@example.com", "secret-pass", "Ada Lovelace", user_id="user-1")
    client.tables["profiles"].append(
        {"id": "user-1", "email": "ada@example.com", "full_name": "Ada Lovelace"}
    )
    client.auth.add_user("bob@example.com", "bob-pass", "Bob Byte", user_id="user-2")
    return client


@pytest.fixture
def store(supabase_client):
    return SupabaseStore(supabase_client)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(store, notifier, clock):
    return SessionController(
        store,
        notifier=notifier,
        delete_confirmation=DeleteConfirmation(window=3.0, clock=clock),
    )
