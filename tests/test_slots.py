from service_planner.planner.slots import (
    apply_slot_selections,
    build_slot_selections,
    ordered_slots,
    slot_number,
)


def test_build_slot_selections_is_dense():
    elements = [
        {"type": "song_hymn", "content": "Opening Hymn: A", "selection": {"title": "A"}},
        {"type": "song_hymn", "content": "Gathering Song:"},
        {"type": "reading", "content": "First Reading", "reference": "Isaiah 6:1-8"},
        {"type": "song_contemporary", "content": "Offertory: B", "selection": {"title": "B"}},
        {"type": "liturgical_song", "content": "Kyrie", "selection": {"title": "Kyrie"}},
        {"type": "song_hymn", "content": "Sending Song: C", "selection": {"title": "C"}},
    ]
    selections = build_slot_selections(elements)
    assert list(selections) == ["song_0", "song_1", "song_2"]
    assert [s["title"] for s in selections.values()] == ["A", "B", "C"]


def test_ordered_slots_sorts_numerically():
    selections = {"song_10": "k", "song_2": "c", "song_0": "a", "song_1": "b"}
    assert [key for key, _ in ordered_slots(selections)] == ["song_0", "song_1", "song_2", "song_10"]
    assert slot_number("song_x") == 0


def test_apply_slot_selections_fills_and_clears_positionally():
    elements = [
        {"type": "liturgy", "content": "Welcome"},
        {"type": "song_hymn", "content": "Opening Hymn:"},
        {"type": "song_hymn", "content": "Hymn of the Day: Old Song", "selection": {"title": "Old Song"}},
        {"type": "song_contemporary", "content": "Sending Song:"},
    ]
    selections = {
        "song_0": {"title": "Come, Thou Fount", "type": "hymn", "number": "807", "hymnal": "cranberry"},
        "song_1": {"title": "", "type": "hymn"},
        "song_2": {"title": "Oceans", "type": "contemporary", "author": "Hillsong"},
    }
    updated, filled, cleared = apply_slot_selections(elements, selections)

    assert filled == 2
    assert cleared == 1
    assert updated[0] == {"type": "liturgy", "content": "Welcome"}
    assert updated[1]["content"] == "Opening Hymn: Come, Thou Fount #807 (Cranberry)"
    assert updated[1]["selection"]["originalPrefix"] == "Opening Hymn"
    assert updated[2] == {"type": "song_hymn", "content": "Hymn of the Day:"}
    assert updated[3]["content"] == "Sending Song: Oceans - Hillsong"


def test_apply_slot_selections_clears_song_elements_without_slots():
    elements = [
        {"type": "song_hymn", "content": "Opening Hymn: A", "selection": {"title": "A"}},
        {"type": "song_hymn", "content": "Closing Hymn: B", "selection": {"title": "B"}},
    ]
    updated, filled, cleared = apply_slot_selections(elements, {"song_0": {"title": "A", "type": "hymn"}})
    assert (filled, cleared) == (1, 1)
    assert "selection" not in updated[1]
    assert updated[1]["content"] == "Closing Hymn:"


def test_apply_slot_selections_treats_non_mapping_values_as_empty():
    elements = [
        {"type": "song_hymn", "content": "Opening Hymn: Old", "selection": {"title": "Old"}},
        {"type": "song_hymn", "content": "Sending Song:"},
    ]
    updated, filled, cleared = apply_slot_selections(
        elements, {"song_0": "Amazing Grace", "song_1": None}
    )

    assert (filled, cleared) == (0, 2)
    assert updated == [
        {"type": "song_hymn", "content": "Opening Hymn:"},
        {"type": "song_hymn", "content": "Sending Song:"},
    ]
