"""Clinician profile persistence with optional remote sync."""

import asyncio
import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from neonest.adapters.proxy_client import ProxyClient
from neonest.domain.profiles import UserProfile
from neonest.services.background import fire_and_forget
from neonest.services.storage import KeyValueStore

USER_PROFILE_KEY = "user_profile"

_logger = logging.getLogger(__name__)


@dataclass
class ProfileService:
    """Keeps the profile locally and mirrors it through the proxy.

    Local storage is the source of truth. Remote calls are bounded by
    ``timeout_seconds`` and fall back to the local profile on any failure.
    """

    store: KeyValueStore
    device_id: str
    proxy: ProxyClient | None = None
    timeout_seconds: float = 5.0
    _pending: set[asyncio.Task[bool]] = field(
        default_factory=set, init=False, repr=False
    )

    def load(self) -> UserProfile | None:
        """Return the locally stored profile."""
        raw = self.store.get(USER_PROFILE_KEY)
        if not raw:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring unreadable local profile")
            return None

    def save(self, profile: UserProfile) -> None:
        """Persist the profile locally."""
        self.store.set(USER_PROFILE_KEY, profile.model_dump_json())

    def save_and_sync(self, profile: UserProfile) -> asyncio.Task[bool] | None:
        """Save locally and push to the proxy in the background."""
        self.save(profile)
        if self.proxy is None:
            return None
        return fire_and_forget(self.push(profile), self._pending)

    async def push(self, profile: UserProfile) -> bool:
        """Upsert the profile remotely; returns False on failure."""
        if self.proxy is None:
            return False
        payload = {"device_id": self.device_id, **profile.model_dump()}
        try:
            await asyncio.wait_for(
                self.proxy.save_profile(payload), timeout=self.timeout_seconds
            )
        except Exception as exc:
            _logger.warning("Profile sync failed: %s", exc)
            return False
        return True

    async def refresh(self) -> UserProfile | None:
        """Pull the remote profile, keeping the local one if unreachable."""
        local = self.load()
        if self.proxy is None:
            return local
        email = local.email if local else None
        try:
            rows = await asyncio.wait_for(
                self.proxy.get_profile(self.device_id, email),
                timeout=self.timeout_seconds,
            )
        except Exception as exc:
            _logger.warning("Profile refresh failed, using local copy: %s", exc)
            return local
        if not rows:
            return local
        try:
            remote = UserProfile.model_validate(
                {key: value for key, value in rows[0].items() if value is not None}
            )
        except ValidationError:
            _logger.warning("Ignoring malformed remote profile")
            return local
        self.save(remote)
        return remote
