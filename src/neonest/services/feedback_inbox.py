"""Server-side feedback intake."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

_TEXT_FIELDS = (
    "type",
    "subject",
    "message",
    "profile_name",
    "profile_email",
    "profile_designation",
    "profile_hospital",
    "profile_city",
    "device_id",
    "device",
    "browser",
    "screen",
    "app_version",
)


class FeedbackRepository(Protocol):
    """Persistence interface for feedback rows."""

    def insert(self, row: dict[str, object]) -> None:
        """Insert a feedback row."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FeedbackInboxService:
    """Insert-only store of user feedback."""

    repository: FeedbackRepository
    clock: Callable[[], datetime] = field(default=_utc_now)

    def submit(self, payload: dict[str, object]) -> dict[str, object]:
        """Normalise and store a feedback message."""
        row: dict[str, object] = {
            key: str(payload.get(key) or "") for key in _TEXT_FIELDS
        }
        row["priority"] = str(payload.get("priority") or "Medium")
        row["created_at"] = self.clock().isoformat()
        self.repository.insert(row)
        return row
