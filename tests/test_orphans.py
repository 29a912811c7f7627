from service_planner.planner.merge import merge_elements
from service_planner.planner.orphans import (
    build_last_orphan_event,
    build_orphan_record,
    build_orphan_warning,
    detect_orphans,
)
from service_planner.planner.selection_index import build_index


def _song(prefix, title):
    return {
        "type": "song_hymn",
        "content": f"{prefix}: {title}",
        "selection": {"title": title, "type": "hymn"},
    }


def test_orphans_are_exactly_unmatched_keys():
    existing = [
        _song("Opening Hymn", "A"),
        _song("Hymn of the Day", "B"),
        {"type": "reading", "content": "Gospel", "reference": "John 3:16"},
        _song("Sending Song", "C"),
    ]
    index = build_index(existing)
    new = [
        {"type": "song_hymn", "content": "Opening Hymn:"},
        {"type": "song_hymn", "content": "Sending Song:"},
    ]
    result = merge_elements(new, index)
    orphans = detect_orphans(index, result.matched_keys)

    assert {(o.kind, o.original_prefix) for o in orphans} == set(index) - result.matched_keys
    assert [o.title for o in orphans] == ["B", "John 3:16"]
    assert orphans[0].original_content == "Hymn of the Day: B"
    assert orphans[1].kind == "reading"


def test_no_orphans_when_everything_matches():
    existing = [_song("Opening Hymn", "A")]
    index = build_index(existing)
    assert detect_orphans(index, {("song", "opening hymn")}) == []


def test_orphan_record_shape():
    index = build_index([_song("Hymn of the Day", "B")])
    orphans = detect_orphans(index, set())
    record = build_orphan_record(
        "7/6/25",
        orphans,
        timestamp="2025-07-01T10:00:00+00:00",
        service_title=None,
        original_count=8,
        new_count=6,
    )
    assert record["date"] == "7/6/25"
    assert record["orphanedBy"] == "pastor_edit"
    assert record["serviceTitle"] == "Untitled Service"
    assert record["originalElementCount"] == 8
    assert record["newElementCount"] == 6
    assert record["orphanReason"]
    assert record["orphanedSongs"] == [
        {
            "title": "B",
            "kind": "song",
            "originalPrefix": "hymn of the day",
            "selection": {"title": "B", "type": "hymn"},
            "originalContent": "Hymn of the Day: B",
        }
    ]


def test_orphan_warning_and_event():
    index = build_index([_song("Hymn of the Day", "B"), _song("Offertory", "C")])
    orphans = detect_orphans(index, set())

    warning = build_orphan_warning(orphans)
    assert warning["count"] == 2
    assert warning["songs"][0] == {"title": "B", "position": "hymn of the day", "kind": "song"}
    assert "B, C" in warning["message"]
    assert warning["archived"] is True

    event = build_last_orphan_event(orphans, "2025-07-01T10:00:00+00:00")
    assert event == {
        "timestamp": "2025-07-01T10:00:00+00:00",
        "orphanCount": 2,
        "songCount": 2,
        "readingCount": 0,
        "orphanedTitles": ["B", "C"],
    }


def test_reading_orphans_are_labelled_separately():
    index = build_index(
        [
            _song("Hymn of the Day", "B"),
            {"type": "reading", "content": "Gospel", "reference": "John 3:16"},
        ]
    )
    orphans = detect_orphans(index, set())

    warning = build_orphan_warning(orphans)
    assert warning["count"] == 2
    assert warning["songCount"] == 1
    assert warning["readingCount"] == 1
    assert warning["songs"][1]["kind"] == "reading"
    assert warning["message"] == (
        "Warning: 1 song selection(s) (B) and 1 reading reference(s) (John 3:16) were removed"
    )
    event = build_last_orphan_event(orphans, "2025-07-01T10:00:00+00:00")
    assert (event["songCount"], event["readingCount"]) == (1, 1)
