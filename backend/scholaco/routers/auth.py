"""Authentication router: sign-in, sign-up, sign-out and session status."""

import logging

from fastapi import APIRouter, Depends, Request

from scholaco.deps import get_controller, http_error
from scholaco.models.application_models import (
    OperationStateResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from scholaco.security import log_security_event, rate_limit_auth
from scholaco.session import SessionController

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _session_response(controller: SessionController) -> SessionResponse:
    return SessionResponse(
        authenticated=controller.is_authenticated,
        user=controller.user,
        greeting_name=controller.greeting_name,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session(controller: SessionController = Depends(get_controller)):
    return _session_response(controller)


@router.post("/sign-in", response_model=SessionResponse)
@rate_limit_auth()
async def sign_in(
    request: Request,
    body: SignInRequest,
    controller: SessionController = Depends(get_controller),
):
    """Sign in with email and password, then load the dashboard state."""
    result = await controller.sign_in(body.email, body.password)
    if not result.ok:
        log_security_event("auth_sign_in_failed", request, {"error_type": result.error.code})
        raise http_error("sign-in", result.error)
    return _session_response(controller)


@router.post("/sign-up", response_model=SessionResponse, status_code=201)
@rate_limit_auth()
async def sign_up(
    request: Request,
    body: SignUpRequest,
    controller: SessionController = Depends(get_controller),
):
    """Register a new account; the welcome email is best effort."""
    result = await controller.sign_up(
        body.first_name, body.last_name, body.email, body.password
    )
    if not result.ok:
        log_security_event("auth_sign_up_failed", request, {"error_type": result.error.code})
        raise http_error("sign-up", result.error)
    return _session_response(controller)


@router.post("/sign-out", response_model=OperationStateResponse)
async def sign_out(controller: SessionController = Depends(get_controller)):
    await controller.sign_out()
    state = controller.operation("sign_out")
    return OperationStateResponse(
        operation="sign_out", state=state.status.value, message=state.message
    )
