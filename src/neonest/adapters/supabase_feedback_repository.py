"""Supabase repository for feedback messages."""

from dataclasses import dataclass

from supabase import Client

from neonest.services.feedback_inbox import FeedbackRepository


@dataclass
class SupabaseFeedbackRepository(FeedbackRepository):
    """Supabase-backed feedback repository."""

    client: Client

    def insert(self, row: dict[str, object]) -> None:
        """Insert a feedback row."""
        self.client.table("feedback").insert(row).execute()
