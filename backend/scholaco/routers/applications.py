"""Applications router.

Provides the add/edit/delete actions for the signed-in user's applications.
Every successful mutation refreshes the controller's list and stats before
the response is returned.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from scholaco.deps import http_error, require_session
from scholaco.models.application_models import (
    Application,
    ApplicationCreate,
    ApplicationUpdate,
    DeleteResponse,
    OperationStateResponse,
)
from scholaco.session import SessionController

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["applications"])


# ---------------------------------------------------------------------------
# POST /applications
# ---------------------------------------------------------------------------


@router.post("/applications", response_model=Application, status_code=201)
async def create_application(
    body: ApplicationCreate,
    controller: SessionController = Depends(require_session),
):
    result = await controller.add_application(body.model_dump())
    if not result.ok:
        raise http_error("adding application", result.error)
    return result.data


# ---------------------------------------------------------------------------
# GET /applications/{application_id}/edit
# ---------------------------------------------------------------------------


@router.get("/applications/{application_id}/edit", response_model=Application)
async def begin_edit(
    application_id: str,
    controller: SessionController = Depends(require_session),
):
    """Load an application into the edit form."""
    application = controller.begin_edit(application_id)
    if application is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Application not found"
        )
    return application


# ---------------------------------------------------------------------------
# DELETE /applications/edit
# ---------------------------------------------------------------------------


@router.delete("/applications/edit", status_code=204)
async def cancel_edit(controller: SessionController = Depends(require_session)):
    """Close the edit form without saving."""
    controller.cancel_edit()


# ---------------------------------------------------------------------------
# PATCH /applications/{application_id}
# ---------------------------------------------------------------------------


@router.patch("/applications/{application_id}", response_model=Application)
async def update_application(
    application_id: str,
    body: ApplicationUpdate,
    controller: SessionController = Depends(require_session),
):
    """Apply the supplied fields only."""
    result = await controller.save_application(
        body.model_dump(exclude_unset=True), application_id
    )
    if not result.ok:
        raise http_error("updating application", result.error)
    return result.data


# ---------------------------------------------------------------------------
# POST /applications/{application_id}/delete
# ---------------------------------------------------------------------------


@router.post("/applications/{application_id}/delete", response_model=DeleteResponse)
async def delete_application(
    application_id: str,
    controller: SessionController = Depends(require_session),
):
    """One press of the delete button.

    The first press arms a short confirmation window; a second press inside
    it deletes the application.
    """
    state, result = await controller.request_delete(application_id)
    if result is not None and not result.ok:
        raise http_error("deleting application", result.error)
    return DeleteResponse(state=state.value, deleted=result is not None)


# ---------------------------------------------------------------------------
# DELETE /applications/{application_id}/reminder
# ---------------------------------------------------------------------------


@router.delete("/applications/{application_id}/reminder", response_model=Application)
async def clear_reminder(
    application_id: str,
    controller: SessionController = Depends(require_session),
):
    result = await controller.clear_reminder(application_id)
    if not result.ok:
        raise http_error("clearing reminder", result.error)
    return result.data


# ---------------------------------------------------------------------------
# GET /operations/{operation}
# ---------------------------------------------------------------------------


@router.get("/operations/{operation}", response_model=OperationStateResponse)
async def get_operation_state(
    operation: str,
    controller: SessionController = Depends(require_session),
):
    """Pending/settled/error state of the last run of an action."""
    state = controller.operation(operation)
    return OperationStateResponse(
        operation=operation, state=state.status.value, message=state.message
    )
