"""Feedback submission with local history."""

import asyncio
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import TypeAdapter, ValidationError

from neonest.adapters.proxy_client import ProxyClient
from neonest.domain.profiles import FeedbackEntry, UserProfile
from neonest.services.background import fire_and_forget
from neonest.services.storage import KeyValueStore

FEEDBACK_HISTORY_KEY = "feedback_history"

FEEDBACK_TYPES = (
    "Bug Report",
    "Feature Request",
    "Calculation Issue",
    "UI/UX Feedback",
    "General Query",
    "Other",
)
PRIORITIES = ("Low", "Medium", "High")

_MOBILE_PATTERN = re.compile(r"Mobile|Android|iPhone", re.IGNORECASE)
_ENTRIES_ADAPTER = TypeAdapter(list[FeedbackEntry])

_logger = logging.getLogger(__name__)


def describe_client(user_agent: str) -> tuple[str, str]:
    """Return (device, browser) labels for a user agent string."""
    device = "Mobile" if _MOBILE_PATTERN.search(user_agent) else "Desktop"
    if "Chrome" in user_agent:
        browser = "Chrome"
    elif "Safari" in user_agent:
        browser = "Safari"
    elif "Firefox" in user_agent:
        browser = "Firefox"
    else:
        browser = "Other"
    return device, browser


def can_send(feedback_type: str, subject: str, message: str) -> bool:
    """Feedback needs a type, a subject and a message."""
    return bool(feedback_type and subject.strip() and message.strip())


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FeedbackService:
    """Records feedback locally and forwards it to the proxy."""

    store: KeyValueStore
    device_id: str
    app_version: str
    proxy: ProxyClient | None = None
    limit: int = 20
    timeout_seconds: float = 5.0
    clock: Callable[[], datetime] = field(default=_utc_now)
    _pending: set[asyncio.Task[bool]] = field(
        default_factory=set, init=False, repr=False
    )

    def history(self) -> list[FeedbackEntry]:
        """Return previously sent feedback, newest first."""
        raw = self.store.get(FEEDBACK_HISTORY_KEY)
        if not raw:
            return []
        try:
            return _ENTRIES_ADAPTER.validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring unreadable feedback history")
            return []

    def submit(  # noqa: PLR0913
        self,
        feedback_type: str,
        subject: str,
        message: str,
        *,
        priority: str = "Medium",
        profile: UserProfile | None = None,
        user_agent: str = "",
        screen: str = "",
    ) -> FeedbackEntry:
        """Store a feedback entry and send it without waiting."""
        if not can_send(feedback_type, subject, message):
            raise ValueError("Feedback needs a type, subject and message")
        device, browser = describe_client(user_agent)
        resolved = profile or UserProfile()
        entry = FeedbackEntry(
            type=feedback_type,
            priority=priority,
            subject=subject,
            message=message,
            timestamp=self.clock(),
            app_version=self.app_version,
            device=device,
            browser=browser,
            screen=screen,
            profile={
                "name": resolved.name,
                "email": resolved.email,
                "designation": resolved.designation,
                "unit": resolved.unit,
                "hospital": resolved.hospital,
                "city": resolved.city,
                "country": resolved.country,
            },
        )
        updated = [entry, *self.history()][: self.limit]
        try:
            self.store.set(
                FEEDBACK_HISTORY_KEY,
                _ENTRIES_ADAPTER.dump_json(updated, by_alias=True).decode(),
            )
        except OSError:
            _logger.warning("Failed to save feedback history", exc_info=True)
        if self.proxy is not None:
            fire_and_forget(self.send(entry), self._pending)
        return entry

    async def send(self, entry: FeedbackEntry) -> bool:
        """Forward an entry to the proxy; returns False on failure."""
        if self.proxy is None:
            return False
        payload = {
            "type": entry.type,
            "priority": entry.priority,
            "subject": entry.subject,
            "message": entry.message,
            "device_id": self.device_id,
            "device": entry.device,
            "browser": entry.browser,
            "screen": entry.screen,
            "app_version": entry.app_version,
            **{f"profile_{key}": value for key, value in entry.profile.items()},
        }
        try:
            await asyncio.wait_for(
                self.proxy.send_feedback(payload), timeout=self.timeout_seconds
            )
        except Exception as exc:
            _logger.warning("Feedback delivery failed: %s", exc)
            return False
        return True
