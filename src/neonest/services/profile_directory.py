"""Server-side profile lookup and upsert for the sync proxy."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from neonest.domain.profiles import PROFILE_FIELDS

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for remote profiles."""

    def find_by_device_id(self, device_id: str) -> dict[str, object] | None:
        """Return the profile row linked to a device."""

    def find_by_email(self, email: str) -> dict[str, object] | None:
        """Return the profile row whose email equals ``email`` exactly."""

    def relink_device(self, profile_id: object, device_id: str) -> None:
        """Point an existing profile row at a new device id."""

    def update(self, profile_id: object, payload: dict[str, object]) -> None:
        """Update an existing profile row."""

    def insert(self, payload: dict[str, object]) -> None:
        """Insert a new profile row."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ProfileDirectoryService:
    """Finds and upserts profiles by device id, falling back to email.

    A clinician who reinstalls the app gets a new device id. Matching by email
    lets the existing row follow them, re-linked to the new device.
    """

    repository: ProfileRepository
    clock: Callable[[], datetime] = field(default=_utc_now)

    def lookup(
        self, device_id: str | None, email: str | None
    ) -> list[dict[str, object]]:
        """Return the matching public profile as a zero- or one-item list."""
        if not device_id and not email:
            raise ValueError("device_id or email required")
        if device_id:
            row = self.repository.find_by_device_id(device_id)
            if row:
                return [_public(row)]
        if email:
            row = self.repository.find_by_email(_normalise_email(email))
            if row:
                if device_id and row.get("device_id") != device_id:
                    self.repository.relink_device(row["id"], device_id)
                    _logger.info("Re-linked profile %s to a new device", row["id"])
                return [_public(row)]
        return []

    def upsert(self, device_id: str | None, profile: dict[str, object]) -> str:
        """Update by device, else by email (re-linking), else insert.

        Returns which of ``updated``, ``relinked`` or ``inserted`` happened.
        """
        if not device_id:
            raise ValueError("device_id required")
        body = {key: profile[key] for key in PROFILE_FIELDS if key in profile}
        if isinstance(body.get("email"), str):
            body["email"] = _normalise_email(body["email"])
        body["device_id"] = device_id
        body["updated_at"] = self.clock().isoformat()

        existing = self.repository.find_by_device_id(device_id)
        if existing:
            self.repository.update(existing["id"], body)
            return "updated"
        email = body.get("email")
        if isinstance(email, str) and email:
            by_email = self.repository.find_by_email(email)
            if by_email:
                self.repository.update(by_email["id"], body)
                return "relinked"
        self.repository.insert(body)
        return "inserted"


def _public(row: dict[str, object]) -> dict[str, object]:
    return {key: row.get(key) for key in PROFILE_FIELDS}


def _normalise_email(email: str) -> str:
    return email.strip().lower()
