"""Profile and feedback proxy endpoints backed by Supabase."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from neonest.api.models import FeedbackPayload, ProfilePayload  # noqa: TC001
from neonest.services.feedback_inbox import FeedbackInboxService  # noqa: TC001
from neonest.services.profile_directory import ProfileDirectoryService  # noqa: TC001

if TYPE_CHECKING:
    from neonest.containers import AppContainer

router = APIRouter(tags=["proxy"])

_logger = logging.getLogger(__name__)


def _server_error() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Server error"},
    )


def get_profile_directory(request: Request) -> ProfileDirectoryService:
    """Return the profile directory, or 503 when Supabase is not configured."""
    container: AppContainer = request.app.state.container
    if container.profile_directory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Remote profile store is not configured",
        )
    return container.profile_directory


def get_feedback_inbox(request: Request) -> FeedbackInboxService:
    """Return the feedback inbox, or 503 when Supabase is not configured."""
    container: AppContainer = request.app.state.container
    if container.feedback_inbox is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Remote feedback store is not configured",
        )
    return container.feedback_inbox


@router.get("/profile", response_model=None)
async def load_profile(
    device_id: str | None = None,
    email: str | None = None,
    directory: ProfileDirectoryService = Depends(get_profile_directory),
) -> list[dict[str, object]] | JSONResponse:
    """Find a profile by device id, falling back to email."""
    if not device_id and not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="device_id or email required",
        )
    try:
        return directory.lookup(device_id, email)
    except Exception:
        _logger.exception("Profile lookup failed")
        return _server_error()


@router.post("/profile", response_model=None)
async def save_profile(
    payload: ProfilePayload,
    directory: ProfileDirectoryService = Depends(get_profile_directory),
) -> dict[str, object] | JSONResponse:
    """Upsert a profile by device id, email, or as a new row."""
    if not payload.device_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="device_id required"
        )
    try:
        outcome = directory.upsert(
            payload.device_id,
            payload.model_dump(exclude={"device_id"}, exclude_none=True),
        )
    except Exception:
        _logger.exception("Profile upsert failed")
        return _server_error()
    return {"ok": True, "result": outcome}


@router.post("/feedback", response_model=None)
async def submit_feedback(
    payload: FeedbackPayload,
    inbox: FeedbackInboxService = Depends(get_feedback_inbox),
) -> dict[str, object] | JSONResponse:
    """Store a feedback message."""
    try:
        inbox.submit(payload.model_dump())
    except Exception:
        _logger.exception("Feedback insert failed")
        return _server_error()
    return {"ok": True}
