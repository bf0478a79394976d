"""Clinician profile and feedback models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

PROFILE_FIELDS = (
    "name",
    "email",
    "mobile",
    "sex",
    "designation",
    "unit",
    "hospital",
    "city",
    "country",
)


class UserProfile(BaseModel):
    """Clinician using the calculator."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    sex: str = ""
    email: str = ""
    mobile: str = ""
    designation: str = ""
    unit: str = "NICU"
    hospital: str = ""
    city: str = ""
    country: str = "India"


def is_profile_complete(profile: UserProfile | None) -> bool:
    """Onboarding is done once name, email, hospital and city are known."""
    if profile is None:
        return False
    return bool(
        profile.name.strip()
        and "@" in profile.email
        and profile.hospital.strip()
        and profile.city.strip()
    )


class FeedbackEntry(BaseModel):
    """Feedback message kept in local history."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    priority: str = "Medium"
    subject: str
    message: str
    timestamp: datetime
    app_version: str = Field(default="", alias="appVersion")
    device: str = ""
    browser: str = ""
    screen: str = ""
    profile: dict[str, str] = Field(default_factory=dict)
