"""Health-check router."""

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Health check"""
    return {"status": "ok", "message": "Scholaco API is running"}


@router.get("/api/v1/health")
async def health_check(request: Request):
    """Report which external capabilities are configured."""
    controller = getattr(request.app.state, "controller", None)

    capabilities = []
    degraded = []

    if controller is not None and controller.store.available:
        capabilities.append("supabase")
    else:
        degraded.append("supabase")

    if controller is not None and controller.notifier.is_available():
        capabilities.append("brevo_email")
    else:
        degraded.append("brevo_email")

    return {
        "status": "degraded" if degraded else "ok",
        "capabilities": capabilities,
        "degraded": degraded,
        "session": controller.state.value if controller is not None else None,
    }
