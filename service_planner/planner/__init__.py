"""
Service Planning Core

Reconciles structural edits of an order of worship with the song and
reading choices already attached to it.
"""

from service_planner.planner.slot_keys import SlotKey, derive_key, slot_prefix
from service_planner.planner.version_guard import ConflictStatus, check_version, next_version
from service_planner.planner.selection_index import IndexEntry, IndexKey, build_index
from service_planner.planner.merge import MergeResult, merge_elements, render_song_content
from service_planner.planner.orphans import (
    OrphanEntry,
    build_last_orphan_event,
    build_orphan_record,
    build_orphan_warning,
    detect_orphans,
)
from service_planner.planner.slots import apply_slot_selections, build_slot_selections
from service_planner.planner.dates import format_service_date, parse_service_date
from service_planner.planner.liturgical import LiturgicalInfo, get_liturgical_info

__all__ = [
    # Step 1: Slot keys
    "SlotKey",
    "derive_key",
    "slot_prefix",
    # Step 2: Version guard
    "ConflictStatus",
    "check_version",
    "next_version",
    # Steps 3-4: Index and merge
    "IndexEntry",
    "IndexKey",
    "build_index",
    "MergeResult",
    "merge_elements",
    "render_song_content",
    # Step 5: Orphans
    "OrphanEntry",
    "detect_orphans",
    "build_orphan_record",
    "build_orphan_warning",
    "build_last_orphan_event",
    # Step 6: Slot index
    "build_slot_selections",
    "apply_slot_selections",
    # Dates and seasons
    "parse_service_date",
    "format_service_date",
    "LiturgicalInfo",
    "get_liturgical_info",
]
