"""HTTP client for the profile and feedback proxy."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class ProxyClient(Protocol):
    """Interface for the server-side profile/feedback proxy."""

    async def get_profile(
        self, device_id: str | None, email: str | None = None
    ) -> list[dict[str, object]]:
        """Return matching profiles (at most one)."""

    async def save_profile(self, payload: dict[str, object]) -> None:
        """Upsert a profile."""

    async def send_feedback(self, payload: dict[str, object]) -> None:
        """Submit a feedback message."""


@dataclass
class HttpxProxyClient(ProxyClient):
    """HTTPX-backed proxy client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 5.0

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float = 5.0) -> "HttpxProxyClient":
        """Create a proxy client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def get_profile(
        self, device_id: str | None, email: str | None = None
    ) -> list[dict[str, object]]:
        """Fetch a profile by device id, falling back to email."""
        params: dict[str, str] = {}
        if device_id:
            params["device_id"] = device_id
        if email:
            params["email"] = email
        response = await self.http_client.get(
            f"{self.base_url}/profile",
            params=params,
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
        return data if isinstance(data, list) else []

    async def save_profile(self, payload: dict[str, object]) -> None:
        """Upsert a profile."""
        response = await self.http_client.post(
            f"{self.base_url}/profile",
            json=payload,
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()

    async def send_feedback(self, payload: dict[str, object]) -> None:
        """Submit a feedback message."""
        response = await self.http_client.post(
            f"{self.base_url}/feedback",
            json=payload,
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
