from __future__ import annotations

"""Index of the song and reading choices attached to a stored service.

Songs and readings are indexed in separate namespaces: a sung ``"Psalm:"``
and a read ``"Psalm"`` are two different slots even though their slot keys
are equal.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from service_planner.planner.slot_keys import SlotKey, derive_key, is_reading, is_song

SONG_KIND = "song"
READING_KIND = "reading"

# (kind, slot key)
IndexKey = Tuple[str, SlotKey]


@dataclass(frozen=True)
class IndexEntry:
    """A choice found in the stored service, with where it came from.

    For songs ``selection`` is the selection dict; for readings it is the
    scripture reference string.
    """
    key: SlotKey
    kind: str
    selection: Any
    original_index: int
    original_content: str

    @property
    def index_key(self) -> IndexKey:
        return (self.kind, self.key)

    @property
    def title(self) -> str:
        if self.kind == READING_KIND:
            return str(self.selection)
        return str(self.selection.get("title") or "")


def element_kind(element: Mapping[str, Any]) -> Optional[str]:
    """Return ``"song"`` or ``"reading"`` for selectable elements, else None."""
    if is_song(element):
        return SONG_KIND
    if is_reading(element):
        return READING_KIND
    return None


def element_index_key(element: Mapping[str, Any]) -> Optional[IndexKey]:
    kind = element_kind(element)
    if kind is None:
        return None
    return (kind, derive_key(element.get("content")))


def element_choice(element: Mapping[str, Any]) -> Optional[Any]:
    """Return the song selection or reading reference carried by an element."""
    if is_song(element):
        selection = element.get("selection")
        return selection if selection else None
    if is_reading(element):
        reference = element.get("reference")
        return reference if reference else None
    return None


def build_index(existing_elements: Sequence[Mapping[str, Any]]) -> Dict[IndexKey, IndexEntry]:
    """Map ``(kind, slot key)`` of the stored service to the choices they carry.

    Elements without a choice are skipped: there is nothing to preserve or
    orphan. Duplicate keys of the same kind keep the last element in
    document order.
    """
    index: Dict[IndexKey, IndexEntry] = {}
    for position, element in enumerate(existing_elements or []):
        choice = element_choice(element)
        if choice is None:
            continue
        entry = IndexEntry(
            key=derive_key(element.get("content")),
            kind=element_kind(element),
            selection=choice,
            original_index=position,
            original_content=element.get("content") or "",
        )
        index[entry.index_key] = entry
    return index
