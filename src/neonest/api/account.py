"""Endpoints for the clinician's own profile and feedback on this device."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status

from neonest.api.models import FeedbackRequest  # noqa: TC001
from neonest.domain.profiles import UserProfile, is_profile_complete
from neonest.services.feedback import FeedbackService, can_send  # noqa: TC001
from neonest.services.profiles import ProfileService  # noqa: TC001

if TYPE_CHECKING:
    from neonest.containers import AppContainer

router = APIRouter(prefix="/account", tags=["account"])


def get_profile_service(request: Request) -> ProfileService:
    container: AppContainer = request.app.state.container
    return container.profile_service


def get_feedback_service(request: Request) -> FeedbackService:
    container: AppContainer = request.app.state.container
    return container.feedback_service


def _profile_view(profile: UserProfile | None) -> dict[str, object]:
    return {
        "profile": profile.model_dump() if profile else None,
        "complete": is_profile_complete(profile),
    }


@router.get("/profile")
async def read_profile(
    profiles: ProfileService = Depends(get_profile_service),
) -> dict[str, object]:
    """Return the locally saved profile and whether onboarding is done."""
    return _profile_view(profiles.load())


@router.put("/profile")
async def update_profile(
    profile: UserProfile,
    profiles: ProfileService = Depends(get_profile_service),
) -> dict[str, object]:
    """Save the profile locally and push it to the proxy in the background."""
    profiles.save_and_sync(profile)
    return _profile_view(profile)


@router.post("/profile/refresh")
async def refresh_profile(
    profiles: ProfileService = Depends(get_profile_service),
) -> dict[str, object]:
    """Pull the remote profile, keeping the local one when unreachable."""
    return _profile_view(await profiles.refresh())


@router.get("/feedback")
async def feedback_history(
    feedback: FeedbackService = Depends(get_feedback_service),
) -> list[dict[str, object]]:
    """Return previously sent feedback, newest first."""
    return [
        entry.model_dump(mode="json", by_alias=True) for entry in feedback.history()
    ]


@router.post("/feedback")
async def send_feedback(
    body: FeedbackRequest,
    request: Request,
    feedback: FeedbackService = Depends(get_feedback_service),
    profiles: ProfileService = Depends(get_profile_service),
) -> dict[str, object]:
    """Record feedback with the current profile and forward it."""
    if not can_send(body.type, body.subject, body.message):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="type, subject and message required",
        )
    entry = feedback.submit(
        body.type,
        body.subject,
        body.message,
        priority=body.priority,
        profile=profiles.load(),
        user_agent=request.headers.get("user-agent", ""),
        screen=body.screen,
    )
    return entry.model_dump(mode="json", by_alias=True)
