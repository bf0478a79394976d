"""Dependency container wiring for the application."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, create_client

from neonest.adapters.json_file_store import JsonFileStore
from neonest.adapters.proxy_client import HttpxProxyClient
from neonest.adapters.remote_synced_store import RemoteSyncedStore
from neonest.adapters.supabase_feedback_repository import SupabaseFeedbackRepository
from neonest.adapters.supabase_kv_repository import SupabaseKeyValueRepository
from neonest.adapters.supabase_profile_repository import SupabaseProfileRepository
from neonest.config import Settings
from neonest.services.defaults import TPN_DEFAULTS_KEY, DefaultsService
from neonest.services.feedback import FEEDBACK_HISTORY_KEY, FeedbackService
from neonest.services.feedback_inbox import FeedbackInboxService
from neonest.services.history import (
    BABY_HISTORY_KEY,
    NUTRITION_HISTORY_KEY,
    HistoryService,
)
from neonest.services.nutrition import NUTRITION_DB_KEY, NutrientTableService
from neonest.services.profile_directory import ProfileDirectoryService
from neonest.services.profiles import USER_PROFILE_KEY, ProfileService
from neonest.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)

SYNCED_KEYS = (
    TPN_DEFAULTS_KEY,
    NUTRITION_DB_KEY,
    BABY_HISTORY_KEY,
    NUTRITION_HISTORY_KEY,
    USER_PROFILE_KEY,
    FEEDBACK_HISTORY_KEY,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: KeyValueStore
    defaults_service: DefaultsService
    nutrient_table_service: NutrientTableService
    tpn_history: HistoryService
    nutrition_history: HistoryService
    profile_service: ProfileService
    feedback_service: FeedbackService
    profile_directory: ProfileDirectoryService | None
    feedback_inbox: FeedbackInboxService | None
    start_resources: Callable[[], Awaitable[None]]
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings, supabase_client: Client | None) -> KeyValueStore:
    """Pick the storage backend once, at composition time."""
    local = JsonFileStore(settings.storage_path)
    if settings.storage_backend == "local":
        return local
    if settings.storage_backend == "synced":
        if supabase_client is None:
            _logger.warning("Synced storage requested without Supabase, using local")
            return local
        return RemoteSyncedStore(
            local=local,
            remote=SupabaseKeyValueRepository(supabase_client),
            device_id=settings.device_id,
            timeout_seconds=settings.remote_timeout_seconds,
        )
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = None
    if resolved_settings.remote_enabled:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
    store = build_store(resolved_settings, supabase_client)
    proxy_client = None
    if resolved_settings.proxy_base_url:
        proxy_client = HttpxProxyClient.create(
            resolved_settings.proxy_base_url,
            timeout_seconds=resolved_settings.remote_timeout_seconds,
        )

    profile_directory = None
    feedback_inbox = None
    if supabase_client is not None:
        profile_directory = ProfileDirectoryService(
            SupabaseProfileRepository(supabase_client)
        )
        feedback_inbox = FeedbackInboxService(
            SupabaseFeedbackRepository(supabase_client)
        )

    async def start_resources() -> None:
        if isinstance(store, RemoteSyncedStore):
            restored = await asyncio.to_thread(store.restore, SYNCED_KEYS)
            _logger.info("Restored %d keys from remote storage", len(restored))

    async def close_resources() -> None:
        if proxy_client is not None:
            await proxy_client.close()
        if isinstance(store, RemoteSyncedStore):
            store.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        defaults_service=DefaultsService(store),
        nutrient_table_service=NutrientTableService(store),
        tpn_history=HistoryService(
            store,
            key=BABY_HISTORY_KEY,
            limit=resolved_settings.history_limit,
            max_age_days=resolved_settings.history_max_age_days,
        ),
        nutrition_history=HistoryService(
            store,
            key=NUTRITION_HISTORY_KEY,
            limit=resolved_settings.history_limit,
            max_age_days=resolved_settings.history_max_age_days,
        ),
        profile_service=ProfileService(
            store,
            device_id=resolved_settings.device_id,
            proxy=proxy_client,
            timeout_seconds=resolved_settings.remote_timeout_seconds,
        ),
        feedback_service=FeedbackService(
            store,
            device_id=resolved_settings.device_id,
            app_version=resolved_settings.app_version,
            proxy=proxy_client,
            limit=resolved_settings.feedback_history_limit,
            timeout_seconds=resolved_settings.remote_timeout_seconds,
        ),
        profile_directory=profile_directory,
        feedback_inbox=feedback_inbox,
        start_resources=start_resources,
        close_resources=close_resources,
    )
