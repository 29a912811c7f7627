from __future__ import annotations

"""Structural merge of an edited service against the stored choices.

The editor's element list always wins on ordering and on non-selection
content. Song and reading slots whose key matches a stored choice of the same
kind inherit that choice; everything else passes through exactly as submitted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from service_planner.logging_utils import get_logger
from service_planner.planner.selection_index import (
    SONG_KIND,
    IndexEntry,
    IndexKey,
    element_index_key,
)
from service_planner.planner.slot_keys import SONG_HYMN, slot_prefix

logger = get_logger(__name__)


@dataclass
class MergeResult:
    merged_elements: List[Dict[str, Any]]
    matched_keys: Set[IndexKey] = field(default_factory=set)


def format_hymnal_name(hymnal: Optional[str]) -> str:
    """Capitalize the first letter of a hymnal name for display."""
    if not hymnal:
        return ""
    return hymnal[0].upper() + hymnal[1:]


def _is_hymn(selection: Mapping[str, Any], element_type: Optional[str]) -> bool:
    song_type = selection.get("type")
    if song_type:
        return song_type == "hymn"
    return element_type == SONG_HYMN


def render_song_details(selection: Mapping[str, Any], element_type: Optional[str] = None) -> str:
    """Render the part of a song line that follows the slot prefix."""
    title = selection.get("title") or ""
    if _is_hymn(selection, element_type):
        details = title
        if selection.get("number"):
            details += f" #{selection['number']}"
        hymnal = format_hymnal_name(selection.get("hymnal"))
        if hymnal:
            details += f" ({hymnal})"
        return details
    if selection.get("author"):
        return f"{title} - {selection['author']}"
    return title


def render_song_content(
    prefix: str, selection: Mapping[str, Any], element_type: Optional[str] = None
) -> str:
    """Return ``"{prefix}: {details}"`` for a song slot."""
    return f"{prefix}: {render_song_details(selection, element_type)}"


def merge_elements(
    new_elements: Sequence[Mapping[str, Any]],
    index: Mapping[IndexKey, IndexEntry],
) -> MergeResult:
    """Combine the editor's structure with the choices in ``index``."""
    merged: List[Dict[str, Any]] = []
    matched: Set[IndexKey] = set()
    for element in new_elements:
        index_key = element_index_key(element)
        entry = index.get(index_key) if index_key is not None else None
        if entry is None:
            merged.append(dict(element))
            continue
        if entry.kind == SONG_KIND:
            prefix = slot_prefix(element.get("content"))
            merged.append(
                {
                    **element,
                    "content": render_song_content(prefix, entry.selection, element.get("type")),
                    "selection": entry.selection,
                }
            )
        else:
            merged.append({**element, "reference": entry.selection})
        matched.add(index_key)
        logger.debug("slot_preserved kind=%s key=%s title=%s", entry.kind, entry.key, entry.title)
    return MergeResult(merged_elements=merged, matched_keys=matched)
