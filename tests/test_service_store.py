import pytest

import service_planner.backend.service_store as store_module
from fake_firestore import FakeFirestoreClient
from service_planner.backend.service_store import ServiceStore
from service_planner.planner.errors import StorageError


@pytest.fixture
def client(monkeypatch):
    fake = FakeFirestoreClient()
    monkeypatch.setattr(store_module, "get_firestore_client", lambda project_id=None: fake)
    return fake


def test_service_documents_are_keyed_by_encoded_date(client):
    store = ServiceStore()
    store.upsert_by_date("12/24/25", {"elements": [], "version": "v1"})

    assert client.docs("serviceDetails")["12-24-25"]["date"] == "12/24/25"
    assert store.find_by_date("12/24/25")["version"] == "v1"
    assert store.find_by_date("12/31/25") is None


def test_upsert_replaces_whole_document(client):
    store = ServiceStore()
    store.upsert_by_date("7/6/25", {"elements": [], "lastOrphanEvent": {"orphanCount": 1}})
    store.upsert_by_date("7/6/25", {"elements": []})

    assert "lastOrphanEvent" not in store.find_by_date("7/6/25")


def test_custom_collection_names(client):
    store = ServiceStore(
        service_details_collection="staging_services",
        service_songs_collection="staging_songs",
        orphaned_songs_collection="staging_orphans",
    )
    store.upsert_by_date("7/6/25", {"elements": []})
    store.write_selection_index("7/6/25", {"selections": {}})
    store.insert_orphan_record({"date": "7/6/25", "timestamp": "t"})

    assert set(client.store) == {"staging_services", "staging_songs", "staging_orphans"}


def test_delete_reports_missing_documents(client):
    store = ServiceStore()
    store.upsert_by_date("7/6/25", {"elements": []})

    assert store.delete_by_date("7/6/25") is True
    assert store.delete_by_date("7/6/25") is False


def test_latest_orphan_record_picks_newest_for_date(client):
    store = ServiceStore()
    store.insert_orphan_record({"date": "7/6/25", "timestamp": "2025-07-01T09:00:00+00:00", "n": 1})
    newest_id = store.insert_orphan_record(
        {"date": "7/6/25", "timestamp": "2025-07-03T09:00:00+00:00", "n": 2}
    )
    store.insert_orphan_record({"date": "7/13/25", "timestamp": "2025-07-09T09:00:00+00:00", "n": 3})

    assert client.docs("orphaned_songs")[newest_id]["n"] == 2
    assert store.latest_orphan_record("7/6/25")["n"] == 2
    assert store.latest_orphan_record("8/3/25") is None


def test_selection_index_write_replaces_slots(client):
    store = ServiceStore()
    store.write_selection_index("7/6/25", {"selections": {"song_0": {}, "song_1": {}}})
    store.write_selection_index("7/6/25", {"selections": {"song_0": {"title": "Kept"}}})

    record = store.read_selection_index("7/6/25")
    assert record["selections"] == {"song_0": {"title": "Kept"}}
    assert record["date"] == "7/6/25"
    assert len(store.list_selection_indexes()) == 1


def test_google_api_errors_become_storage_errors(client):
    store = ServiceStore()
    client.fail("serviceDetails", "get")

    with pytest.raises(StorageError) as excinfo:
        store.find_by_date("7/6/25")
    assert "find_by_date" in str(excinfo.value)


def test_archive_insert_failure_is_storage_error(client):
    store = ServiceStore()
    client.fail("orphaned_songs")

    with pytest.raises(StorageError):
        store.insert_orphan_record({"date": "7/6/25", "timestamp": "t"})


def test_store_passes_project_id_to_client_factory(monkeypatch):
    fake = FakeFirestoreClient()
    calls = []

    def _client_factory(project_id=None):
        calls.append(project_id)
        return fake

    monkeypatch.setattr(store_module, "get_firestore_client", _client_factory)
    store = ServiceStore(project_id="church-planner")
    store.find_by_date("7/6/25")
    store.read_selection_index("7/6/25")

    assert calls == ["church-planner"]
