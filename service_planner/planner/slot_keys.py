from __future__ import annotations

"""Slot key derivation for correlating service elements across edits.

An element's identity inside a service is positional, so two versions of the
same service can only be lined up through the text the editor typed. The
text before the first ``:`` is the slot key: ``"Opening Hymn: Amazing
Grace"`` and ``"Opening Hymn:"`` both belong to the slot ``"opening hymn"``.
"""

from typing import Any, Mapping, NewType, Optional

SlotKey = NewType("SlotKey", str)

SONG_HYMN = "song_hymn"
SONG_CONTEMPORARY = "song_contemporary"
READING_TYPE = "reading"
SONG_TYPES = frozenset({SONG_HYMN, SONG_CONTEMPORARY})
ELEMENT_TYPES = frozenset(
    {"liturgy", READING_TYPE, "message", SONG_HYMN, SONG_CONTEMPORARY, "liturgical_song"}
)


def slot_prefix(content: Optional[str]) -> str:
    """Return the display prefix of an element (text before ``:``, trimmed)."""
    if not content:
        return ""
    return content.split(":", 1)[0].strip()


def derive_key(content: Optional[str]) -> SlotKey:
    """Return the case-insensitive slot key for an element's display text."""
    return SlotKey(slot_prefix(content).lower())


def is_song(element: Mapping[str, Any]) -> bool:
    return element.get("type") in SONG_TYPES


def is_reading(element: Mapping[str, Any]) -> bool:
    return element.get("type") == READING_TYPE


def is_selectable(element: Mapping[str, Any]) -> bool:
    """Return True for elements that can carry a song or reading choice."""
    return is_song(element) or is_reading(element)
