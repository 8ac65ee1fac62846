"""Error taxonomy and the result wrapper returned by repository and mail calls.

The Store raises the exceptions below.  The repository and the Brevo
service catch them and hand back a :class:`Result` so that callers check
``result.ok`` explicitly instead of wrapping every call in ``try``.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ScholacoError(Exception):
    """Base class for all expected failures."""

    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class Unauthenticated(ScholacoError):
    """No active session for an operation that requires one."""

    code = "unauthenticated"


class AuthorizationDenied(ScholacoError):
    """The Store refused access to a row owned by someone else."""

    code = "forbidden"


class NotFound(ScholacoError):
    """The mutation or delete target does not exist for this user."""

    code = "not_found"


class ValidationFailure(ScholacoError):
    """Input was rejected before reaching the Store."""

    code = "validation_failed"


class TransportFailure(ScholacoError):
    """Network or provider error from Supabase or Brevo."""

    code = "transport_failed"


@dataclass
class Result(Generic[T]):
    """Outcome of a repository or notifier call."""

    data: Optional[T] = None
    error: Optional[ScholacoError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "Result[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: ScholacoError) -> "Result[T]":
        return cls(error=error)
