"""Per-patient calculation history."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from pydantic import TypeAdapter, ValidationError

from neonest.domain.history import HistoryEntry
from neonest.services.storage import KeyValueStore

BABY_HISTORY_KEY = "baby_history"
NUTRITION_HISTORY_KEY = "nut_audit_history"

_SUGGESTION_LIMIT = 5
_ENTRIES_ADAPTER = TypeAdapter(list[HistoryEntry])

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class HistoryService:
    """Append-only history of saved calculations, newest first."""

    store: KeyValueStore
    key: str = BABY_HISTORY_KEY
    limit: int = 200
    max_age_days: int = 30
    clock: Callable[[], datetime] = field(default=_utc_now)

    def load(self) -> list[HistoryEntry]:
        """Return entries saved within the retention window."""
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            entries = _ENTRIES_ADAPTER.validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring unreadable history under key=%s", self.key)
            return []
        cutoff = self.clock() - timedelta(days=self.max_age_days)
        return [entry for entry in entries if _aware(entry.timestamp) > cutoff]

    def record(self, entry: HistoryEntry) -> bool:
        """Save an entry, replacing the same baby's entry for that date."""
        entries = [
            existing
            for existing in self.load()
            if not (
                existing.baby_of == entry.baby_of
                and existing.patient_id == entry.patient_id
                and existing.date == entry.date
            )
        ]
        updated = [entry, *entries][: self.limit]
        try:
            self.store.set(
                self.key, _ENTRIES_ADAPTER.dump_json(updated, by_alias=True).decode()
            )
        except OSError:
            _logger.warning(
                "Failed to save history under key=%s", self.key, exc_info=True
            )
            return False
        return True

    def suggest_by_name(self, query: str) -> list[HistoryEntry]:
        """Entries whose mother's name contains the query, one per baby."""
        if not query:
            return []
        needle = query.lower()
        matches = [
            entry
            for entry in self.load()
            if entry.baby_of and needle in entry.baby_of.lower()
        ]
        return _unique(matches, lambda entry: (entry.baby_of, entry.patient_id))

    def suggest_by_patient_id(self, prefix: str) -> list[HistoryEntry]:
        """Entries whose patient id starts with the prefix, one per id."""
        if not prefix:
            return []
        matches = [
            entry
            for entry in self.load()
            if entry.patient_id and entry.patient_id.startswith(prefix)
        ]
        return _unique(matches, lambda entry: entry.patient_id)


def _unique(
    entries: list[HistoryEntry], key: Callable[[HistoryEntry], object]
) -> list[HistoryEntry]:
    seen: set[object] = set()
    unique = []
    for entry in entries:
        marker = key(entry)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(entry)
    return unique[:_SUGGESTION_LIMIT]


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
