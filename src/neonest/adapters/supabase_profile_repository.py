"""Supabase-backed profile repository."""

from dataclasses import dataclass

from supabase import Client

from neonest.domain.profiles import PROFILE_FIELDS
from neonest.services.profile_directory import ProfileRepository

_COLUMNS = ", ".join(("id", "device_id", *PROFILE_FIELDS))


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the ``profiles`` table."""

    client: Client

    def find_by_device_id(self, device_id: str) -> dict[str, object] | None:
        """Return the profile linked to a device id."""
        response = (
            self.client.table("profiles")
            .select(_COLUMNS)
            .eq("device_id", device_id)
            .limit(1)
            .execute()
        )
        if response.data:
            return response.data[0]
        return None

    def find_by_email(self, email: str) -> dict[str, object] | None:
        """Return the profile whose stored email equals ``email`` exactly."""
        response = (
            self.client.table("profiles")
            .select(_COLUMNS)
            .eq("email", email)
            .limit(1)
            .execute()
        )
        if response.data:
            return response.data[0]
        return None

    def relink_device(self, profile_id: object, device_id: str) -> None:
        """Move a profile to a new device id."""
        self.client.table("profiles").update({"device_id": device_id}).eq(
            "id", profile_id
        ).execute()

    def update(self, profile_id: object, payload: dict[str, object]) -> None:
        """Update a profile row."""
        self.client.table("profiles").update(payload).eq("id", profile_id).execute()

    def insert(self, payload: dict[str, object]) -> None:
        """Insert a profile row."""
        response = self.client.table("profiles").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create profile in Supabase")
