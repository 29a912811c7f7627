from __future__ import annotations

"""Direct song selection saves from the worship team.

Unlike structural saves, these never merge: slot ``song_n`` is written onto
the n-th song element of the stored service.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
import asyncio

from service_planner.backend.service_details import LiturgicalProvider
from service_planner.backend.service_store import ServiceStore
from service_planner.logging_utils import get_logger
from service_planner.planner.dates import parse_service_date
from service_planner.planner.errors import StorageError
from service_planner.planner.liturgical import get_liturgical_info
from service_planner.planner.slots import apply_slot_selections
from service_planner.planner.version_guard import next_version


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SongSelectionService:
    def __init__(
        self,
        store: ServiceStore,
        liturgical_provider: LiturgicalProvider = get_liturgical_info,
    ) -> None:
        self._store = store
        self._liturgical_provider = liturgical_provider
        self._logger = get_logger(__name__)

    async def get_selections(self, date: str) -> Optional[Dict[str, Any]]:
        """Return the slot record for a date, backfilling its liturgical context."""
        service_date = parse_service_date(date)
        record = await asyncio.to_thread(self._store.read_selection_index, date)
        if record is None or record.get("liturgicalContext"):
            return record
        record = dict(record)
        record["liturgicalContext"] = self._liturgical_provider(service_date).to_context()
        try:
            await asyncio.to_thread(self._store.write_selection_index, date, record)
        except StorageError as exc:
            # Serve the record even if the backfill could not be stored.
            self._logger.warning("liturgical_backfill_failed date=%s error=%s", date, exc)
        return record

    async def list_selections(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._store.list_selection_indexes)

    async def save_selections(
        self,
        date: str,
        selections: Mapping[str, Any],
        updated_by: Optional[str] = None,
        *,
        liturgical_context: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Store slot selections and mirror them onto the service's song elements."""
        service_date = parse_service_date(date)
        if liturgical_context:
            liturgical = dict(liturgical_context)
        else:
            liturgical = self._liturgical_provider(service_date).to_context()

        current = await asyncio.to_thread(self._store.read_selection_index, date)
        record = dict(current or {})
        record.update(
            {
                "date": date,
                "selections": dict(selections),
                "liturgicalContext": liturgical,
                "updatedBy": updated_by,
                "timestamp": _utc_iso(),
            }
        )
        await asyncio.to_thread(self._store.write_selection_index, date, record)

        service = await asyncio.to_thread(self._store.find_by_date, date)
        if not service or not service.get("elements"):
            self._logger.info("selections_saved date=%s slots=%s service=missing", date, len(selections))
            return {"success": True, "filled": 0, "cleared": 0}

        elements, filled, cleared = apply_slot_selections(service["elements"], selections)
        document = dict(service)
        document.update(
            {
                "elements": elements,
                "liturgicalContext": liturgical,
                "version": next_version(service.get("version")),
            }
        )
        await asyncio.to_thread(self._store.upsert_by_date, date, document)
        self._logger.info(
            "selections_saved date=%s filled=%s cleared=%s updated_by=%s",
            date,
            filled,
            cleared,
            updated_by,
        )
        return {"success": True, "filled": filled, "cleared": cleared, "version": document["version"]}
