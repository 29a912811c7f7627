from __future__ import annotations

"""Detection and archiving payloads for choices lost in a structural edit."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from service_planner.planner.selection_index import READING_KIND, SONG_KIND, IndexEntry, IndexKey
from service_planner.planner.slot_keys import SlotKey

PASTOR_EDIT = "pastor_edit"
STRUCTURAL_EDIT_REASON = "slot removed or renamed by a structural edit"


@dataclass(frozen=True)
class OrphanEntry:
    title: str
    original_prefix: SlotKey
    selection: Any
    original_content: str
    kind: str = SONG_KIND

    def to_record(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "kind": self.kind,
            "originalPrefix": self.original_prefix,
            "selection": self.selection,
            "originalContent": self.original_content,
        }


def detect_orphans(
    index: Mapping[IndexKey, IndexEntry], matched_keys: Set[IndexKey]
) -> List[OrphanEntry]:
    """Return every indexed choice whose ``(kind, key)`` was not matched."""
    return [
        OrphanEntry(
            title=entry.title,
            original_prefix=entry.key,
            selection=entry.selection,
            original_content=entry.original_content,
            kind=entry.kind,
        )
        for index_key, entry in index.items()
        if index_key not in matched_keys
    ]


def count_by_kind(orphans: Sequence[OrphanEntry]) -> Dict[str, int]:
    songs = sum(1 for orphan in orphans if orphan.kind == SONG_KIND)
    return {"songCount": songs, "readingCount": len(orphans) - songs}


def build_orphan_record(
    date: str,
    orphans: Sequence[OrphanEntry],
    *,
    timestamp: str,
    service_title: Optional[str],
    original_count: int,
    new_count: int,
    orphaned_by: str = PASTOR_EDIT,
    reason: str = STRUCTURAL_EDIT_REASON,
) -> Dict[str, Any]:
    """Build the append-only archive record for one orphan event."""
    return {
        "date": date,
        "timestamp": timestamp,
        "orphanedBy": orphaned_by,
        "orphanedSongs": [orphan.to_record() for orphan in orphans],
        "serviceTitle": service_title or "Untitled Service",
        "originalElementCount": original_count,
        "newElementCount": new_count,
        "orphanReason": reason,
    }


def _warning_message(orphans: Sequence[OrphanEntry]) -> str:
    songs = [orphan.title for orphan in orphans if orphan.kind == SONG_KIND]
    readings = [orphan.title for orphan in orphans if orphan.kind == READING_KIND]
    parts = []
    if songs:
        parts.append(f"{len(songs)} song selection(s) ({', '.join(songs)})")
    if readings:
        parts.append(f"{len(readings)} reading reference(s) ({', '.join(readings)})")
    return f"Warning: {' and '.join(parts)} were removed"


def build_orphan_warning(orphans: Sequence[OrphanEntry], *, archived: bool = True) -> Dict[str, Any]:
    """Build the non-fatal warning returned to the caller."""
    return {
        "count": len(orphans),
        **count_by_kind(orphans),
        "songs": [
            {"title": orphan.title, "position": orphan.original_prefix, "kind": orphan.kind}
            for orphan in orphans
        ],
        "message": _warning_message(orphans),
        "archived": archived,
    }


def build_last_orphan_event(orphans: Sequence[OrphanEntry], timestamp: str) -> Dict[str, Any]:
    return {
        "timestamp": timestamp,
        "orphanCount": len(orphans),
        **count_by_kind(orphans),
        "orphanedTitles": [orphan.title for orphan in orphans],
    }
