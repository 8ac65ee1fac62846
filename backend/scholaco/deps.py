"""Shared dependencies for the Scholaco API routers.

Centralises access to the process-wide ``SessionController`` and the
translation of :mod:`scholaco.errors` failures into HTTP responses, so
router modules can ``from scholaco.deps import …`` without importing
``main``.
"""

import logging

from fastapi import Depends, HTTPException, Request, status

from scholaco.errors import (
    AuthorizationDenied,
    NotFound,
    ScholacoError,
    TransportFailure,
    Unauthenticated,
    ValidationFailure,
)
from scholaco.session import SessionController

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    AuthorizationDenied: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationFailure: status.HTTP_422_UNPROCESSABLE_ENTITY,
    TransportFailure: status.HTTP_502_BAD_GATEWAY,
}


def _safe_error(operation: str, e: Exception) -> str:
    """Log the full error but return a message without internal details."""
    logger.error("Error during %s: %s", operation, e)
    return f"{operation} failed. Please try again."


def http_error(operation: str, error: ScholacoError) -> HTTPException:
    """Map a domain error to an HTTPException with a safe detail."""
    code = _STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if isinstance(error, (Unauthenticated, ValidationFailure)):
        detail = error.message
    elif isinstance(error, NotFound):
        detail = "Application not found"
    else:
        detail = _safe_error(operation, error)
    return HTTPException(status_code=code, detail=detail)


def get_controller(request: Request) -> SessionController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session not initialised",
        )
    return controller


def require_session(
    controller: SessionController = Depends(get_controller),
) -> SessionController:
    """Controller dependency that rejects anonymous callers."""
    if not controller.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in.",
        )
    return controller
