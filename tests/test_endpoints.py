"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from neonest.adapters.remote_synced_store import RemoteSyncedStore
from neonest.api.app import create_app
from neonest.services.nutrition import NutrientTableService
from neonest.services.storage import InMemoryStore
from tests.conftest import SlowRemoteRepository


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_tpn_calculate_returns_breakdown(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/tpn/calculate", json={"weightG": 1000, "gir": 6})

    assert response.status_code == 200
    data = response.json()
    assert data["s1"]["total_ml"] == 16
    assert data["mon"]["tpn"] == 100
    assert data["s3"] is None


def test_tpn_calculate_returns_errors(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/tpn/calculate", json={"weightG": 0})

    assert response.status_code == 200
    assert response.json() == {"errors": ["Weight must be greater than 0."]}


def test_gir_solve(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/gir/solve",
        json={"weightG": 1000, "fluidPerKg": 60, "targetGir": 8, "dexCombo": "10+50"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["exact"] is True
    assert round(data["high_ml"], 1) == 13.8


def test_nutrition_audit_uses_stored_overrides(container) -> None:
    container.store.set("nutrition_db", '{"energy": {"bm": 80}}')
    client = TestClient(create_app(container))

    response = client.post("/nutrition/audit", json={"wtNow": 1000, "totalMlKg": 100})

    assert response.status_code == 200
    energy = response.json()["rows"][0]
    assert energy["nutrient"]["key"] == "energy"
    assert energy["per_kg"] == 80


def test_nutrition_audit_does_not_wait_on_remote_storage(container) -> None:
    remote = SlowRemoteRepository()
    store = RemoteSyncedStore(
        InMemoryStore(), remote, device_id="device-1", timeout_seconds=0.05
    )
    container.nutrient_table_service = NutrientTableService(store)
    client = TestClient(create_app(container))

    response = client.post("/nutrition/audit", json={})

    assert response.status_code == 200
    assert remote.calls == []
    remote.release.set()
    store.close()


def test_nutrition_audit_rejects_zero_weight(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/nutrition/audit", json={"wtNow": 0})

    assert response.status_code == 400


def test_tpn_defaults_round_trip(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/tpn/defaults").json()["weightG"] == 1000

    saved = client.put("/tpn/defaults", json={"weightG": 2400, "tfr": 150})
    assert saved.status_code == 200
    assert client.get("/tpn/defaults").json()["weightG"] == 2400

    reset = client.post("/tpn/defaults/reset")
    assert reset.json()["weightG"] == 1000


def test_tpn_history_save_and_search(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/tpn/history",
        json={
            "babyOf": "Asha Rao",
            "patientId": "NICU-12",
            "date": "2026-03-10",
            "inputs": {"weightG": 1200},
        },
    )

    assert response.status_code == 200
    assert response.json()["saved"] is True
    assert response.json()["entry"]["results"]["mon"]["tfv"] == 120

    by_name = client.get("/tpn/history", params={"name": "asha"}).json()
    by_id = client.get("/tpn/history", params={"patient_id": "NICU"}).json()
    assert by_name[0]["patientId"] == "NICU-12"
    assert by_id[0]["babyOf"] == "Asha Rao"


def test_get_profile_requires_identifier(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/profile")

    assert response.status_code == 400


def test_get_profile_by_email_relinks(container, profile_repository) -> None:
    profile_repository.rows.append(
        {"id": 1, "device_id": "old", "email": "iyer@example.org", "name": "Dr. Iyer"}
    )
    client = TestClient(create_app(container))

    response = client.get(
        "/profile", params={"device_id": "new", "email": "iyer@example.org"}
    )

    assert response.status_code == 200
    assert response.json()[0]["name"] == "Dr. Iyer"
    assert profile_repository.rows[0]["device_id"] == "new"


def test_post_profile_inserts(container, profile_repository) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/profile", json={"device_id": "dev-a", "name": "Dr. Rao", "email": "R@x.org"}
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "result": "inserted"}
    assert profile_repository.rows[0]["email"] == "r@x.org"


def test_post_profile_requires_device_id(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/profile", json={"name": "Dr. Rao"})

    assert response.status_code == 400


def test_profile_repository_failure_is_server_error(
    container, profile_repository
) -> None:
    profile_repository.fail = True
    client = TestClient(create_app(container))

    response = client.get("/profile", params={"device_id": "dev-a"})

    assert response.status_code == 500
    assert response.json() == {"error": "Server error"}


def test_profile_without_remote_store_is_unavailable(container) -> None:
    container.profile_directory = None
    client = TestClient(create_app(container))

    response = client.get("/profile", params={"device_id": "dev-a"})

    assert response.status_code == 503


def test_post_feedback(container, feedback_repository) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/feedback",
        json={"type": "Bug Report", "subject": "Crash", "message": "It crashed"},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert feedback_repository.rows[0]["priority"] == "Medium"


def test_post_feedback_failure(container, feedback_repository) -> None:
    feedback_repository.fail = True
    client = TestClient(create_app(container))

    response = client.post("/feedback", json={"type": "Other"})

    assert response.status_code == 500


def test_feedback_without_remote_store_is_unavailable(container) -> None:
    container.feedback_inbox = None
    client = TestClient(create_app(container))

    response = client.post("/feedback", json={"type": "Other"})

    assert response.status_code == 503


def test_cors_preflight_allows_any_origin(container) -> None:
    client = TestClient(create_app(container))

    response = client.options(
        "/profile",
        headers={
            "Origin": "https://app.example.org",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_lifespan_starts_and_closes_resources(container) -> None:
    events: list[str] = []

    async def start_resources() -> None:
        events.append("start")

    async def close_resources() -> None:
        events.append("close")

    container.start_resources = start_resources
    container.close_resources = close_resources

    with TestClient(create_app(container)) as client:
        assert client.get("/health").status_code == 200
        assert events == ["start"]

    assert events == ["start", "close"]


def test_nutrition_history_save_and_search(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/nutrition/history",
        json={
            "babyOf": "Meera Das",
            "patientId": "NICU-7",
            "date": "2026-03-10",
            "inputs": {"wtNow": 1500, "wtLast": 1400},
        },
    )

    assert response.status_code == 200
    assert response.json()["saved"] is True
    assert response.json()["entry"]["results"]["rows"][0]["nutrient"]["key"] == (
        "energy"
    )
    matches = client.get("/nutrition/history", params={"name": "meera"}).json()
    assert matches[0]["patientId"] == "NICU-7"
    assert client.get("/tpn/history", params={"name": "meera"}).json() == []


def test_nutrition_history_rejects_zero_weight(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/nutrition/history", json={"date": "2026-03-10", "inputs": {"wtNow": 0}}
    )

    assert response.status_code == 400
    assert container.nutrition_history.load() == []


def test_account_profile_round_trip(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/account/profile").json() == {
        "profile": None,
        "complete": False,
    }

    saved = client.put(
        "/account/profile",
        json={
            "name": "Dr. Iyer",
            "email": "iyer@example.org",
            "hospital": "City Hospital",
            "city": "Pune",
        },
    )

    assert saved.status_code == 200
    assert saved.json()["complete"] is True
    assert client.get("/account/profile").json()["profile"]["unit"] == "NICU"
    refreshed = client.post("/account/profile/refresh").json()
    assert refreshed["profile"]["name"] == "Dr. Iyer"


def test_account_feedback_records_history(container) -> None:
    client = TestClient(create_app(container))
    client.put("/account/profile", json={"name": "Dr. Iyer", "city": "Pune"})

    response = client.post(
        "/account/feedback",
        json={"type": "Bug Report", "subject": "GIR", "message": "Looks off"},
        headers={"User-Agent": "Mozilla/5.0 (iPhone) Safari/604.1"},
    )

    assert response.status_code == 200
    entry = response.json()
    assert entry["device"] == "Mobile"
    assert entry["browser"] == "Safari"
    assert entry["profile"]["name"] == "Dr. Iyer"
    history = client.get("/account/feedback").json()
    assert [item["subject"] for item in history] == ["GIR"]


def test_account_feedback_requires_subject_and_message(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/account/feedback", json={"type": "Other", "subject": " ", "message": "x"}
    )

    assert response.status_code == 400
    assert client.get("/account/feedback").json() == []
