from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.zone_matrix.main import create_app
from src.zone_matrix.persistence.filesystem import FileStorage
from src.zone_matrix.persistence.sessions import SessionStore
from src.zone_matrix.services.geography.index import GeographyIndex


@pytest.fixture
def api_client(index: GeographyIndex, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from src.zone_matrix.api.routes import health as health_routes
    from src.zone_matrix.api.routes import sessions as session_routes
    from src.zone_matrix.persistence import database
    from src.zone_matrix.services import submission

    # keep every write inside tmpdir and never reach Supabase
    monkeypatch.setattr(session_routes, "get_geography_index", lambda: index)
    monkeypatch.setattr(health_routes, "get_geography_index", lambda: index)
    monkeypatch.setattr(
        session_routes,
        "SessionStore",
        lambda: SessionStore(directory=tmp_path / "sessions", storage=FileStorage(root=tmp_path)),
    )
    monkeypatch.setattr(submission, "FileStorage", lambda: FileStorage(root=tmp_path))
    monkeypatch.setattr(database, "get_supabase_client", lambda: None)

    return TestClient(create_app())


def _create(api_client: TestClient) -> str:
    response = api_client.post("/api/sessions", json={"vendor_id": "V-42"})
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health_endpoints(api_client: TestClient) -> None:
    assert api_client.get("/api/health").json() == {"status": "ok"}

    geography = api_client.get("/api/health/geography").json()
    assert geography["loaded"] is True
    assert geography["records"] == 17


def test_geography_unavailable_returns_503(api_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from src.zone_matrix.api.routes import sessions as session_routes

    def missing():
        raise FileNotFoundError("Pincode file not found: data/pincodes.json")

    monkeypatch.setattr(session_routes, "get_geography_index", missing)

    response = api_client.post("/api/sessions", json={})
    assert response.status_code == 503
    assert "Geography dataset unavailable" in response.json()["detail"]


def test_roster_errors_map_to_http_status(api_client: TestClient) -> None:
    session_id = _create(api_client)
    base = f"/api/sessions/{session_id}"

    response = api_client.post(f"{base}/roster/select", json={"code": "N3"})
    assert response.status_code == 409
    assert response.json()["detail"] == "Please select N1 first before selecting N3."

    assert api_client.post(f"{base}/roster/select", json={"code": "Z9"}).status_code == 404
    assert api_client.post(f"{base}/regions/Atlantis/select-all").status_code == 404
    assert api_client.post(f"{base}/proceed").status_code == 422
    assert api_client.get("/api/sessions/unknown-session").status_code == 404
    assert api_client.get("/api/sessions/bad%20id").status_code == 400


def test_bulk_roster_operations(api_client: TestClient) -> None:
    session_id = _create(api_client)
    base = f"/api/sessions/{session_id}"

    added = api_client.post(f"{base}/regions/East/select-all").json()
    assert added == {"changed": ["E1", "E2"], "selected_zone_codes": ["E1", "E2"]}

    revealed = api_client.post(f"{base}/regions/East/reveal").json()
    assert revealed["visible_zones_per_region"]["East"] == 3

    removed = api_client.post(f"{base}/regions/East/deselect-all").json()
    assert removed == {"changed": ["E2", "E1"], "selected_zone_codes": []}


def test_full_configuration_flow(api_client: TestClient, tmp_path: Path) -> None:
    session_id = _create(api_client)
    base = f"/api/sessions/{session_id}"

    for code in ("n1", "S1", "S2"):
        assert api_client.post(f"{base}/roster/select", json={"code": code}).status_code == 200

    response = api_client.post(f"{base}/zones/0/cities/toggle", json={"city_key": "Gurgaon||Haryana"})
    assert response.status_code == 409
    assert response.json()["detail"] == "Proceed to zone configuration first."

    session = api_client.post(f"{base}/proceed").json()
    assert session["step"] == "configure-zones"
    assert [zone["zone_code"] for zone in session["zones"]] == ["N1", "S1", "S2"]

    states = api_client.get(f"{base}/zones/0/states").json()
    assert [state["state"] for state in states["states"]] == ["Chandigarh", "Delhi", "Haryana", "Punjab"]
    assert states["active_state"] == "Chandigarh"

    selected = api_client.post(f"{base}/zones/0/states/Delhi/select-all").json()
    assert selected["changed"] == ["Dwarka||Delhi", "New Delhi||Delhi"]
    assert selected["zone"]["selected_states"] == ["Delhi"]

    toggled = api_client.post(f"{base}/zones/0/cities/toggle", json={"city_key": "Dwarka||Delhi"}).json()
    assert toggled["owned"] is False

    cities = api_client.get(f"{base}/zones/0/states/Delhi/cities").json()["cities"]
    assert [(c["city"], c["selected"], c["leftover_sources"]) for c in cities] == [
        ("Dwarka", False, ["N1"]),
        ("New Delhi", True, []),
    ]

    # S1 is locked until N1 is saved
    assert api_client.post(f"{base}/zones/1/states/Kerala/select-all").status_code == 409

    saved = api_client.post(f"{base}/save", json={}).json()
    assert saved["status"] == "completed"
    assert saved["next_zone_index"] == 1

    assert api_client.post(f"{base}/zones/0/cities/toggle", json={"city_key": "Dwarka||Delhi"}).status_code == 409

    api_client.post(f"{base}/zones/1/states/Karnataka/select-all")
    api_client.post(f"{base}/zones/1/states/Kerala/select-all", json={"include_leftovers": False})

    prompt = api_client.post(f"{base}/save")
    assert prompt.status_code == 409
    assert prompt.json()["detail"]["prompt"]["kind"] == "region_exhausted"
    assert prompt.json()["detail"]["prompt"]["zone_codes"] == ["S2"]

    confirmed = api_client.post(f"{base}/save", json={"confirm": True}).json()
    assert confirmed["deleted"] == ["S2"]
    assert confirmed["all_complete"] is True

    assert api_client.get(f"{base}/matrix").status_code == 404

    matrix = api_client.post(f"{base}/finalize").json()
    assert matrix["zones"] == ["N1", "S1"]
    assert matrix["size"] == 4

    price = api_client.put(f"{base}/matrix/price", json={"from_zone": "N1", "to_zone": "S1", "price": 12.5})
    assert price.json() == {"from_zone": "N1", "to_zone": "S1", "price": 12.5}
    invalid = api_client.put(f"{base}/matrix/price", json={"from_zone": "N1", "to_zone": "S1", "price": 1000})
    assert invalid.status_code == 422

    exported = api_client.get(f"{base}/matrix/export")
    assert exported.headers["content-type"].startswith("text/csv")
    assert exported.text == ",N1,S1\nN1,,12.5\nS1,,\n"

    upload = ",S1,N1\nN1,3,4\n"
    needs_confirm = api_client.post(f"{base}/matrix/import", files={"file": ("matrix.csv", upload, "text/csv")})
    assert needs_confirm.status_code == 409
    assert needs_confirm.json()["detail"]["prompt"]["kind"] == "replace_prices"

    mismatch = api_client.post(
        f"{base}/matrix/import",
        files={"file": ("matrix.csv", ",N1,N3\nN1,1,2\n", "text/csv")},
        data={"confirm": "true"},
    )
    assert mismatch.status_code == 422

    imported = api_client.post(
        f"{base}/matrix/import",
        files={"file": ("matrix.csv", upload, "text/csv")},
        data={"confirm": "true"},
    ).json()
    assert imported["imported"] == 2

    submitted = api_client.post(f"{base}/submit")
    assert submitted.status_code == 200
    payload = submitted.json()
    assert payload["vendor_id"] == "V-42"
    assert payload["price_chart"] == {"N1": {"N1": 4.0, "S1": 3.0}}
    assert payload["outputs"]["database"] is False
    output_dir = Path(payload["outputs"]["directory"])
    assert (output_dir / "handoff.json").exists()
    assert (output_dir / "price_matrix.csv").read_text(encoding="utf-8") == ",N1,S1\nN1,4,3\nS1,,\n"
    assert output_dir.parent == tmp_path / "outputs"

    assert api_client.delete(base).json() == {"session_id": session_id, "deleted": True}
    assert api_client.get(base).status_code == 404
