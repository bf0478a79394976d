"""Shared test fixtures."""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from neonest.adapters.proxy_client import ProxyClient
from neonest.config import Settings
from neonest.containers import AppContainer
from neonest.services.defaults import DefaultsService
from neonest.services.feedback import FeedbackService
from neonest.services.feedback_inbox import FeedbackInboxService, FeedbackRepository
from neonest.services.history import (
    BABY_HISTORY_KEY,
    NUTRITION_HISTORY_KEY,
    HistoryService,
)
from neonest.services.nutrition import NutrientTableService
from neonest.services.profile_directory import (
    ProfileDirectoryService,
    ProfileRepository,
)
from neonest.services.profiles import ProfileService
from neonest.services.storage import InMemoryStore, RemoteKeyValueRepository

FIXED_NOW = datetime(2026, 3, 10, 9, 30, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    rows: list[dict[str, object]] = field(default_factory=list)
    fail: bool = False

    def _check(self) -> None:
        if self.fail:
            raise RuntimeError("database unavailable")

    def find_by_device_id(self, device_id: str) -> dict[str, object] | None:
        self._check()
        for row in self.rows:
            if row.get("device_id") == device_id:
                return row
        return None

    def find_by_email(self, email: str) -> dict[str, object] | None:
        self._check()
        for row in self.rows:
            if row.get("email") == email:
                return row
        return None

    def relink_device(self, profile_id: object, device_id: str) -> None:
        self._row(profile_id)["device_id"] = device_id

    def update(self, profile_id: object, payload: dict[str, object]) -> None:
        self._row(profile_id).update(payload)

    def insert(self, payload: dict[str, object]) -> None:
        self._check()
        self.rows.append({"id": len(self.rows) + 1, **payload})

    def _row(self, profile_id: object) -> dict[str, object]:
        self._check()
        for row in self.rows:
            if row["id"] == profile_id:
                return row
        raise KeyError(profile_id)


@dataclass
class InMemoryFeedbackRepository(FeedbackRepository):
    """In-memory feedback repository for tests."""

    rows: list[dict[str, object]] = field(default_factory=list)
    fail: bool = False

    def insert(self, row: dict[str, object]) -> None:
        if self.fail:
            raise RuntimeError("database unavailable")
        self.rows.append(row)


@dataclass
class InMemoryRemoteRepository(RemoteKeyValueRepository):
    """In-memory remote key-value repository for tests."""

    values: dict[tuple[str, str], str] = field(default_factory=dict)
    fail: bool = False

    def fetch(self, device_id: str, key: str) -> str | None:
        if self.fail:
            raise ConnectionError("offline")
        return self.values.get((device_id, key))

    def store(self, device_id: str, key: str, value: str) -> None:
        if self.fail:
            raise ConnectionError("offline")
        self.values[(device_id, key)] = value

    def remove(self, device_id: str, key: str) -> None:
        if self.fail:
            raise ConnectionError("offline")
        self.values.pop((device_id, key), None)


@dataclass
class SlowRemoteRepository(InMemoryRemoteRepository):
    """Remote that hangs until released."""

    release: threading.Event = field(default_factory=threading.Event)
    calls: list[tuple[str, str]] = field(default_factory=list)

    def fetch(self, device_id: str, key: str) -> str | None:
        self.calls.append(("fetch", key))
        self.release.wait(5)
        return super().fetch(device_id, key)

    def store(self, device_id: str, key: str, value: str) -> None:
        self.calls.append(("store", key))
        self.release.wait(5)
        super().store(device_id, key, value)


@dataclass
class FakeProxyClient(ProxyClient):
    """Fake proxy client recording calls."""

    profiles: list[dict[str, object]] = field(default_factory=list)
    saved: list[dict[str, object]] = field(default_factory=list)
    feedback: list[dict[str, object]] = field(default_factory=list)
    lookups: list[tuple[str | None, str | None]] = field(default_factory=list)
    delay_seconds: float = 0
    error: Exception | None = None

    async def _respond(self) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error

    async def get_profile(
        self, device_id: str | None, email: str | None = None
    ) -> list[dict[str, object]]:
        self.lookups.append((device_id, email))
        await self._respond()
        return self.profiles

    async def save_profile(self, payload: dict[str, object]) -> None:
        await self._respond()
        self.saved.append(payload)

    async def send_feedback(self, payload: dict[str, object]) -> None:
        await self._respond()
        self.feedback.append(payload)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url=None,
        supabase_service_key=None,
        proxy_base_url=None,
        device_id="device-1",
        storage_path=tmp_path / "storage.json",
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def feedback_repository() -> InMemoryFeedbackRepository:
    return InMemoryFeedbackRepository()


@pytest.fixture
def container(
    settings: Settings,
    store: InMemoryStore,
    profile_repository: InMemoryProfileRepository,
    feedback_repository: InMemoryFeedbackRepository,
) -> AppContainer:
    async def start_resources() -> None:
        return None

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=store,
        defaults_service=DefaultsService(store),
        nutrient_table_service=NutrientTableService(store),
        tpn_history=HistoryService(store, key=BABY_HISTORY_KEY),
        nutrition_history=HistoryService(store, key=NUTRITION_HISTORY_KEY),
        profile_service=ProfileService(store, device_id=settings.device_id),
        feedback_service=FeedbackService(
            store, device_id=settings.device_id, app_version=settings.app_version
        ),
        profile_directory=ProfileDirectoryService(
            profile_repository, clock=fixed_clock
        ),
        feedback_inbox=FeedbackInboxService(feedback_repository, clock=fixed_clock),
        start_resources=start_resources,
        close_resources=close_resources,
    )
