import asyncio

import pytest

import service_planner.backend.service_store as store_module
from fake_firestore import FakeFirestoreClient
from service_planner.backend.service_store import ServiceStore
from service_planner.backend.song_selections import SongSelectionService
from service_planner.planner.errors import ServiceValidationError

DATE = "7/13/25"
DOC_ID = "7-13-25"


@pytest.fixture
def client(monkeypatch):
    fake = FakeFirestoreClient()
    monkeypatch.setattr(store_module, "get_firestore_client", lambda project_id=None: fake)
    return fake


@pytest.fixture
def service(client):
    return SongSelectionService(ServiceStore())


def _service_elements():
    return [
        {"type": "liturgy", "content": "Welcome"},
        {"type": "song_hymn", "content": "Opening Hymn:"},
        {"type": "reading", "content": "Gospel Reading", "reference": "Luke 10:38-42"},
        {
            "type": "song_contemporary",
            "content": "Gathering Song: Way Maker - Sinach",
            "selection": {"title": "Way Maker", "type": "contemporary", "author": "Sinach"},
        },
        {"type": "song_hymn", "content": "Sending Song:"},
    ]


def test_save_without_service_only_writes_index(service, client):
    result = asyncio.run(
        service.save_selections(DATE, {"song_0": {"title": "Here I Am, Lord"}}, "Music Director")
    )

    assert result == {"success": True, "filled": 0, "cleared": 0}
    record = client.docs("service_songs")[DOC_ID]
    assert record["selections"] == {"song_0": {"title": "Here I Am, Lord"}}
    assert record["updatedBy"] == "Music Director"
    assert record["liturgicalContext"]["seasonId"] == "ORDINARY_TIME"
    assert client.docs("serviceDetails") == {}


def test_save_fills_and_clears_song_elements(service, client):
    client.collection("serviceDetails").document(DOC_ID).set(
        {"date": DATE, "elements": _service_elements(), "version": "2025-07-10T08:00:00+00:00"}
    )
    selections = {
        "song_0": {"title": "Come, Thou Fount", "type": "hymn", "number": "807", "hymnal": "cranberry"},
        "song_1": {"title": ""},
        "song_2": {"title": "Build My Life", "type": "contemporary", "author": "Housefires"},
    }

    result = asyncio.run(service.save_selections(DATE, selections, "Music Director"))

    assert result["filled"] == 2
    assert result["cleared"] == 1
    stored = client.docs("serviceDetails")[DOC_ID]
    elements = stored["elements"]
    assert elements[1]["content"] == "Opening Hymn: Come, Thou Fount #807 (Cranberry)"
    assert elements[1]["selection"]["originalPrefix"] == "Opening Hymn"
    assert elements[2] == _service_elements()[2]
    assert elements[3] == {"type": "song_contemporary", "content": "Gathering Song:"}
    assert elements[4]["content"] == "Sending Song: Build My Life - Housefires"
    assert stored["version"] == result["version"]
    assert stored["version"] > "2025-07-10T08:00:00+00:00"


def test_save_keeps_other_index_fields(service, client):
    client.collection("service_songs").document(DOC_ID).set(
        {"date": DATE, "selections": {"song_0": {"title": "Old"}}, "orphanedSongsRemoved": 1}
    )

    asyncio.run(service.save_selections(DATE, {}, None))

    record = client.docs("service_songs")[DOC_ID]
    assert record["selections"] == {}
    assert record["orphanedSongsRemoved"] == 1


def test_get_selections_backfills_liturgical_context(service, client):
    client.collection("service_songs").document("12-7-25").set(
        {"date": "12/7/25", "selections": {"song_0": {"title": "O Come, O Come, Emmanuel"}}}
    )

    record = asyncio.run(service.get_selections("12/7/25"))

    assert record["liturgicalContext"]["seasonId"] == "ADVENT"
    assert client.docs("service_songs")["12-7-25"]["liturgicalContext"]["seasonId"] == "ADVENT"


def test_get_selections_missing_date_record(service, client):
    assert asyncio.run(service.get_selections(DATE)) is None


def test_invalid_date_is_rejected(service, client):
    with pytest.raises(ServiceValidationError):
        asyncio.run(service.save_selections("July 13", {}))
    assert client.docs("service_songs") == {}
