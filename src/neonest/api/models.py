"""Pydantic request models for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field

from neonest.domain.gir import DextroseCombo
from neonest.domain.nutrition import NutritionAuditInputs
from neonest.domain.tpn import TPNInputs


class GirRequest(BaseModel):
    """Inputs for the GIR dextrose calculator."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    weight_g: float = Field(default=1000, alias="weightG")
    fluid_per_kg: float = Field(default=60, alias="fluidPerKg")
    target_gir: float = Field(default=6, alias="targetGir")
    combo: DextroseCombo = Field(default=DextroseCombo.TEN_FIFTY, alias="dexCombo")


class TPNHistoryRequest(BaseModel):
    """Save a TPN calculation for a baby."""

    model_config = ConfigDict(populate_by_name=True)

    baby_of: str = Field(default="", alias="babyOf")
    patient_id: str = Field(default="", alias="patientId")
    date: str
    inputs: TPNInputs


class ProfilePayload(BaseModel):
    """Profile upsert body sent by the app."""

    model_config = ConfigDict(extra="ignore")

    device_id: str | None = None
    name: str | None = None
    email: str | None = None
    mobile: str | None = None
    sex: str | None = None
    designation: str | None = None
    unit: str | None = None
    hospital: str | None = None
    city: str | None = None
    country: str | None = None


class FeedbackPayload(BaseModel):
    """Feedback body sent by the app."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    priority: str | None = None
    subject: str | None = None
    message: str | None = None
    profile_name: str | None = None
    profile_email: str | None = None
    profile_designation: str | None = None
    profile_hospital: str | None = None
    profile_city: str | None = None
    device_id: str | None = None
    device: str | None = None
    browser: str | None = None
    screen: str | None = None
    app_version: str | None = None


class NutritionHistoryRequest(BaseModel):
    """Save a nutrition audit for a baby."""

    model_config = ConfigDict(populate_by_name=True)

    baby_of: str = Field(default="", alias="babyOf")
    patient_id: str = Field(default="", alias="patientId")
    date: str
    inputs: NutritionAuditInputs


class FeedbackRequest(BaseModel):
    """Feedback written by the clinician on this device."""

    type: str = ""
    priority: str = "Medium"
    subject: str = ""
    message: str = ""
    screen: str = ""
