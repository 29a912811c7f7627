from __future__ import annotations

"""Service structure saves with selection-preserving merge.

Saving a structure for a date runs strictly in this order:

1. read the stored service and compare versions (a stale version is logged,
   never rejected),
2. index the stored song/reading choices by slot key,
3. merge the incoming structure against that index,
4. archive any orphaned choices (best effort),
5. rewrite the slot-numbered selection record (best effort),
6. write the merged service with a fresh version.

Only failures of the read in step 1 and the write in step 6 reach the caller.
Nothing here serializes concurrent writers to the same date; the merge is the
conflict resolution.
"""

from dataclasses import dataclass, field
from datetime import date as calendar_date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
import asyncio

from service_planner.backend.service_store import ServiceStore
from service_planner.logging_utils import get_logger, summarize_elements, summarize_payload
from service_planner.planner.dates import parse_service_date
from service_planner.planner.errors import NotFoundError, StorageError
from service_planner.planner.liturgical import LiturgicalInfo, get_liturgical_info
from service_planner.planner.merge import merge_elements
from service_planner.planner.orphans import (
    OrphanEntry,
    build_last_orphan_event,
    build_orphan_record,
    build_orphan_warning,
    detect_orphans,
)
from service_planner.planner.selection_index import SONG_KIND, build_index
from service_planner.planner.slots import build_slot_selections
from service_planner.planner.version_guard import ConflictStatus, check_version, next_version

LiturgicalProvider = Callable[[calendar_date], LiturgicalInfo]

# Fields owned by the save path; callers cannot override them through ``fields``.
_RESERVED_FIELDS = frozenset(
    {"date", "elements", "version", "liturgicalContext", "lastOrphanEvent"}
)


@dataclass(frozen=True)
class SaveResult:
    document: Dict[str, Any]
    orphan_warning: Optional[Dict[str, Any]] = None
    conflict: ConflictStatus = ConflictStatus.NO_CONFLICT
    orphans: List[OrphanEntry] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        payload = dict(self.document)
        if self.orphan_warning:
            payload["orphanWarning"] = self.orphan_warning
        return payload


@dataclass(frozen=True)
class OrphanRecovery:
    orphaned_songs: List[Dict[str, Any]]
    orphaned_at: str

    @property
    def count(self) -> int:
        return len(self.orphaned_songs)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "orphanedSongs": self.orphaned_songs,
            "orphanedAt": self.orphaned_at,
            "count": self.count,
        }


class ServiceDetailsService:
    def __init__(
        self,
        store: ServiceStore,
        liturgical_provider: LiturgicalProvider = get_liturgical_info,
    ) -> None:
        self._store = store
        self._liturgical_provider = liturgical_provider
        self._logger = get_logger(__name__)

    async def get_service(self, date: str) -> Optional[Dict[str, Any]]:
        parse_service_date(date)
        return await asyncio.to_thread(self._store.find_by_date, date)

    async def list_services(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._store.list_services)

    async def delete_service(self, date: str) -> None:
        parse_service_date(date)
        deleted = await asyncio.to_thread(self._store.delete_by_date, date)
        if not deleted:
            raise NotFoundError(f"No service found for {date}")
        self._logger.info("service_deleted date=%s", date)

    async def save_service_structure(
        self,
        date: str,
        elements: Sequence[Mapping[str, Any]],
        version: Optional[str] = None,
        *,
        fields: Optional[Mapping[str, Any]] = None,
        liturgical_context: Optional[Mapping[str, Any]] = None,
    ) -> SaveResult:
        """Merge a new structure for ``date`` into the stored service."""
        service_date = parse_service_date(date)
        incoming = [dict(element) for element in elements or []]

        self._logger.debug(
            "save_structure_start date=%s version=%s elements=%s",
            date,
            version,
            summarize_elements(incoming),
        )
        existing = await asyncio.to_thread(self._store.find_by_date, date)
        stored = existing or {}
        conflict = check_version(stored.get("version"), version, date=date)

        index = build_index(stored.get("elements") or [])
        merge = merge_elements(incoming, index)
        orphans = detect_orphans(index, merge.matched_keys)
        new_version = next_version(stored.get("version"))

        orphan_warning = None
        if orphans:
            self._logger.warning(
                "orphans_detected date=%s count=%s titles=%s",
                date,
                len(orphans),
                summarize_payload([orphan.title for orphan in orphans]),
            )
            archived = await self._archive_orphans(
                date,
                orphans,
                timestamp=new_version,
                service_title=(fields or {}).get("title") or stored.get("title"),
                original_count=len(stored.get("elements") or []),
                new_count=len(incoming),
            )
            orphan_warning = build_orphan_warning(orphans, archived=archived)
            await self._resync_selection_index(
                date, merge.merged_elements, orphans, timestamp=new_version
            )

        if liturgical_context:
            liturgical = dict(liturgical_context)
        else:
            liturgical = self._liturgical_provider(service_date).to_context()

        document = dict(stored)
        document.update(
            {key: value for key, value in (fields or {}).items() if key not in _RESERVED_FIELDS}
        )
        document.update(
            {
                "date": date,
                "elements": merge.merged_elements,
                "version": new_version,
                "liturgicalContext": liturgical,
            }
        )
        if orphans:
            document["lastOrphanEvent"] = build_last_orphan_event(orphans, new_version)
        else:
            document.pop("lastOrphanEvent", None)

        await asyncio.to_thread(self._store.upsert_by_date, date, document)
        self._logger.info(
            "merge_complete date=%s preserved=%s orphaned=%s conflict=%s version=%s",
            date,
            len(merge.matched_keys),
            len(orphans),
            conflict.value,
            new_version,
        )
        return SaveResult(
            document=document,
            orphan_warning=orphan_warning,
            conflict=conflict,
            orphans=orphans,
        )

    async def recover_orphans(self, date: str) -> OrphanRecovery:
        """Return the most recent orphan record for ``date``."""
        parse_service_date(date)
        record = await asyncio.to_thread(self._store.latest_orphan_record, date)
        if record is None:
            raise NotFoundError("No orphaned songs found for this date")
        return OrphanRecovery(
            orphaned_songs=list(record.get("orphanedSongs") or []),
            orphaned_at=record.get("timestamp") or "",
        )

    async def _archive_orphans(
        self,
        date: str,
        orphans: Sequence[OrphanEntry],
        *,
        timestamp: str,
        service_title: Optional[str],
        original_count: int,
        new_count: int,
    ) -> bool:
        record = build_orphan_record(
            date,
            orphans,
            timestamp=timestamp,
            service_title=service_title,
            original_count=original_count,
            new_count=new_count,
        )
        try:
            record_id = await asyncio.to_thread(self._store.insert_orphan_record, record)
        except StorageError as exc:
            self._logger.warning(
                "orphan_archive_failed date=%s count=%s error=%s", date, len(orphans), exc
            )
            return False
        self._logger.info(
            "orphan_archive_written date=%s count=%s record_id=%s", date, len(orphans), record_id
        )
        return True

    async def _resync_selection_index(
        self,
        date: str,
        merged_elements: Sequence[Mapping[str, Any]],
        orphans: Sequence[OrphanEntry],
        *,
        timestamp: str,
    ) -> bool:
        selections = build_slot_selections(merged_elements)
        removed = sum(1 for orphan in orphans if orphan.kind == SONG_KIND)
        try:
            current = await asyncio.to_thread(self._store.read_selection_index, date)
            record = dict(current or {})
            record.update(
                {
                    "date": date,
                    "selections": selections,
                    "lastSyncedWithServiceDetails": timestamp,
                    "orphanedSongsRemoved": removed,
                }
            )
            await asyncio.to_thread(self._store.write_selection_index, date, record)
        except StorageError as exc:
            self._logger.warning("selection_resync_failed date=%s error=%s", date, exc)
            return False
        self._logger.info(
            "selection_resync date=%s slots=%s removed=%s", date, len(selections), removed
        )
        return True
