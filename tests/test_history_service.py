"""Tests for per-patient calculation history."""

from datetime import timedelta

from neonest.domain.history import HistoryEntry
from neonest.services.history import HistoryService
from neonest.services.storage import InMemoryStore
from tests.conftest import FIXED_NOW, fixed_clock


def _entry(
    baby_of: str, patient_id: str, date: str, days_ago: int = 0
) -> HistoryEntry:
    return HistoryEntry(
        baby_of=baby_of,
        patient_id=patient_id,
        date=date,
        inputs={"weightG": 1200},
        timestamp=FIXED_NOW - timedelta(days=days_ago),
    )


class _ReadOnlyStore(InMemoryStore):
    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


def test_record_prepends_newest_entry() -> None:
    service = HistoryService(InMemoryStore(), clock=fixed_clock)

    assert service.record(_entry("Asha", "P1", "2026-03-09"))
    assert service.record(_entry("Meera", "P2", "2026-03-10"))

    assert [entry.baby_of for entry in service.load()] == ["Meera", "Asha"]


def test_record_replaces_same_baby_and_date() -> None:
    service = HistoryService(InMemoryStore(), clock=fixed_clock)
    service.record(_entry("Asha", "P1", "2026-03-10"))
    updated = _entry("Asha", "P1", "2026-03-10")
    updated = updated.model_copy(update={"inputs": {"weightG": 1300}})

    service.record(updated)

    entries = service.load()
    assert len(entries) == 1
    assert entries[0].inputs == {"weightG": 1300}


def test_history_is_capped() -> None:
    service = HistoryService(InMemoryStore(), limit=3, clock=fixed_clock)
    for day in range(5):
        service.record(_entry("Asha", "P1", f"2026-03-0{day + 1}"))

    assert [entry.date for entry in service.load()] == [
        "2026-03-05",
        "2026-03-04",
        "2026-03-03",
    ]


def test_old_entries_are_pruned_on_load() -> None:
    service = HistoryService(InMemoryStore(), max_age_days=30, clock=fixed_clock)
    service.record(_entry("Old", "P9", "2026-01-01", days_ago=45))
    service.record(_entry("New", "P1", "2026-03-10"))

    assert [entry.baby_of for entry in service.load()] == ["New"]


def test_failed_write_reports_false() -> None:
    service = HistoryService(_ReadOnlyStore(), clock=fixed_clock)

    assert service.record(_entry("Asha", "P1", "2026-03-10")) is False


def test_corrupt_history_loads_empty() -> None:
    service = HistoryService(InMemoryStore({"baby_history": "nope"}), clock=fixed_clock)

    assert service.load() == []


def test_suggest_by_name_is_case_insensitive_and_unique() -> None:
    service = HistoryService(InMemoryStore(), clock=fixed_clock)
    service.record(_entry("Asha Rao", "P1", "2026-03-08"))
    service.record(_entry("Asha Rao", "P1", "2026-03-09"))
    service.record(_entry("Nasha", "P3", "2026-03-09"))
    service.record(_entry("Meera", "P2", "2026-03-10"))

    matches = service.suggest_by_name("ASHA")

    assert [(entry.baby_of, entry.patient_id) for entry in matches] == [
        ("Nasha", "P3"),
        ("Asha Rao", "P1"),
    ]
    assert service.suggest_by_name("") == []


def test_suggest_by_patient_id_prefix_limited_to_five() -> None:
    service = HistoryService(InMemoryStore(), clock=fixed_clock)
    for index in range(7):
        service.record(_entry(f"Mother {index}", f"NICU-{index}", "2026-03-10"))
    service.record(_entry("Other", "PICU-1", "2026-03-10"))

    matches = service.suggest_by_patient_id("NICU")

    assert len(matches) == 5
    assert all(entry.patient_id.startswith("NICU") for entry in matches)
    assert service.suggest_by_patient_id("") == []
