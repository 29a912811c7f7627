from __future__ import annotations

"""Slot-numbered projection of song choices (``song_0``, ``song_1``, ...)."""

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from service_planner.planner.merge import render_song_content
from service_planner.planner.slot_keys import is_song, slot_prefix

SLOT_PREFIX = "song_"


def slot_name(position: int) -> str:
    return f"{SLOT_PREFIX}{position}"


def slot_number(name: str) -> int:
    """Return the ordinal of a slot key, or 0 when it carries no number."""
    _, _, suffix = name.partition("_")
    try:
        return int(suffix)
    except ValueError:
        return 0


def ordered_slots(selections: Mapping[str, Any]) -> List[Tuple[str, Any]]:
    """Return slot items sorted numerically so ``song_10`` follows ``song_9``."""
    return sorted(selections.items(), key=lambda item: slot_number(item[0]))


def build_slot_selections(elements: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Number every song element that has a selection densely, in order."""
    selections: Dict[str, Any] = {}
    for element in elements:
        if is_song(element) and element.get("selection"):
            selections[slot_name(len(selections))] = element["selection"]
    return selections


def _has_title(selection: Any) -> bool:
    """Non-mapping slot values count as empty slots."""
    if not isinstance(selection, Mapping):
        return False
    return bool(str(selection.get("title") or "").strip())


def apply_slot_selections(
    elements: Sequence[Mapping[str, Any]], selections: Mapping[str, Any]
) -> Tuple[List[Dict[str, Any]], int, int]:
    """Write slot choices onto song elements positionally.

    Returns the new element list with the number of filled and cleared slots.
    The n-th song element receives the n-th slot; a slot without a title
    clears the element back to its bare prefix.
    """
    slots = [selection for _, selection in ordered_slots(selections)]
    updated: List[Dict[str, Any]] = []
    filled = cleared = 0
    position = 0
    for element in elements:
        if not is_song(element):
            updated.append(dict(element))
            continue
        selection = slots[position] if position < len(slots) else None
        position += 1
        prefix = slot_prefix(element.get("content")).split(" - ")[0].strip()
        if _has_title(selection):
            updated.append(
                {
                    **element,
                    "content": render_song_content(prefix, selection, element.get("type")),
                    "selection": {**selection, "originalPrefix": prefix},
                }
            )
            filled += 1
        else:
            cleared_element = {**element, "content": f"{prefix}:"}
            cleared_element.pop("selection", None)
            updated.append(cleared_element)
            cleared += 1
    return updated, filled, cleared
