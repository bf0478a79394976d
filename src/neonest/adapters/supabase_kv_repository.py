"""Supabase repository for synced key-value pairs."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from neonest.services.storage import RemoteKeyValueRepository


@dataclass
class SupabaseKeyValueRepository(RemoteKeyValueRepository):
    """Stores device key-value pairs in the ``kv_store`` table."""

    client: Client

    def fetch(self, device_id: str, key: str) -> str | None:
        """Return the stored value for a device key."""
        response = (
            self.client.table("kv_store")
            .select("value")
            .eq("device_id", device_id)
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def store(self, device_id: str, key: str, value: str) -> None:
        """Upsert a device key."""
        self.client.table("kv_store").upsert(
            {
                "device_id": device_id,
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="device_id,key",
        ).execute()

    def remove(self, device_id: str, key: str) -> None:
        """Delete a device key."""
        self.client.table("kv_store").delete().eq("device_id", device_id).eq(
            "key", key
        ).execute()
