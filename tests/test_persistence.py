from pathlib import Path

import pytest

from src.zone_matrix.persistence import database
from src.zone_matrix.persistence.filesystem import FileStorage
from src.zone_matrix.persistence.sessions import SessionStore


class FakeTable:
    def __init__(self, calls: list, fail: bool = False) -> None:
        self.calls = calls
        self.fail = fail

    def upsert(self, record, on_conflict=None):
        self.calls.append((record, on_conflict))
        return self

    def execute(self):
        if self.fail:
            raise RuntimeError("network unreachable")
        return self


class FakeSupabase:
    def __init__(self, fail: bool = False) -> None:
        self.tables: list[str] = []
        self.calls: list = []
        self.fail = fail

    def table(self, name: str) -> FakeTable:
        self.tables.append(name)
        return FakeTable(self.calls, fail=self.fail)


PAYLOAD = {
    "vendor_id": "V-1",
    "zones": [{"zone_code": "N1"}],
    "price_matrix": [{"from_zone": "N1", "to_zone": "N1", "price": 3.0}],
    "price_chart": {"N1": {"N1": 3.0}},
    "timestamp": "2024-01-01T00:00:00+00:00",
}


def test_file_storage_creates_run_directory(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="matrix_test")

    assert run_dir.exists()
    assert run_dir.is_dir()
    assert run_dir.parent == tmp_path / "outputs"
    assert run_dir.name.startswith("matrix_test_")


def test_file_storage_writes_json_and_csv(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="matrix_test")

    handoff_path = run_dir / "handoff.json"
    matrix_path = run_dir / "price_matrix.csv"

    storage.write_json(handoff_path, {"hello": "world"})
    storage.write_csv(matrix_path, ",N1\nN1,2\n")

    assert handoff_path.read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert matrix_path.read_text(encoding="utf-8") == ",N1\nN1,2\n"
    assert storage.read_json(handoff_path) == {"hello": "world"}
    assert not list(run_dir.glob("*.tmp"))


def test_session_store_round_trip(tmp_path: Path) -> None:
    store = SessionStore(directory=tmp_path / "sessions", storage=FileStorage(root=tmp_path))

    assert store.load("abc") is None
    path = store.save("abc", {"version": 1, "revision": 3})

    assert path == (tmp_path / "sessions" / "abc.json").resolve()
    assert store.exists("abc")
    assert store.load("abc") == {"version": 1, "revision": 3}

    store.save("abc", {"version": 1, "revision": 4})
    assert store.load("abc")["revision"] == 4

    assert store.delete("abc") is True
    assert store.delete("abc") is False


@pytest.mark.parametrize("session_id", ["../escape", "", "a b", "x" * 65, "abc\n"])
def test_session_store_rejects_unsafe_ids(tmp_path: Path, session_id: str) -> None:
    store = SessionStore(directory=tmp_path, storage=FileStorage(root=tmp_path))

    with pytest.raises(ValueError, match="Invalid session id"):
        store.load(session_id)


def test_database_save_skipped_without_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(database, "get_supabase_client", lambda: None)

    assert database.save_vendor_matrix_to_database(PAYLOAD, key="V-1") is False


def test_database_save_upserts_by_key(monkeypatch: pytest.MonkeyPatch) -> None:
    client = FakeSupabase()
    monkeypatch.setattr(database, "get_supabase_client", lambda: client)

    assert database.save_vendor_matrix_to_database(PAYLOAD, key="V-1") is True

    assert client.tables == ["vendor_zone_matrices"]
    record, on_conflict = client.calls[0]
    assert on_conflict == "matrix_key"
    assert record["matrix_key"] == "V-1"
    assert record["price_chart"] == {"N1": {"N1": 3.0}}
    assert record["submitted_at"] == PAYLOAD["timestamp"]


def test_database_failure_surfaces_as_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(database, "get_supabase_client", lambda: FakeSupabase(fail=True))

    with pytest.raises(ConnectionError, match="Database write failed"):
        database.save_vendor_matrix_to_database(PAYLOAD, key="V-1")
