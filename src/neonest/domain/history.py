"""Saved patient calculations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """One saved calculation for a baby on a given day."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    baby_of: str = Field(default="", alias="babyOf")
    patient_id: str = Field(default="", alias="patientId")
    date: str = ""
    inputs: dict[str, object] = Field(default_factory=dict)
    results: dict[str, object] | None = None
    timestamp: datetime
