from __future__ import annotations

"""Firestore-backed persistence for service documents and their side records."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from service_planner.backend.firebase_app import get_firestore_client
from service_planner.logging_utils import get_logger
from service_planner.planner.dates import document_id
from service_planner.planner.errors import StorageError

logger = get_logger(__name__)


@contextmanager
def _storage_errors(operation: str, date: Optional[str] = None) -> Iterator[None]:
    """Re-raise Google API failures as StorageError."""
    try:
        yield
    except google_exceptions.GoogleAPIError as exc:
        logger.error("storage_failed operation=%s date=%s error=%s", operation, date, exc)
        raise StorageError(f"{operation} failed: {exc}") from exc


@dataclass
class ServiceStore:
    """CRUD helpers for service documents, slot indexes and orphan archives."""
    service_details_collection: str = "serviceDetails"
    service_songs_collection: str = "service_songs"
    orphaned_songs_collection: str = "orphaned_songs"
    project_id: Optional[str] = None
    _client: Optional[firestore.Client] = field(default=None, init=False, repr=False)

    def _ensure_client(self) -> None:
        """Lazily initialize the Firestore client."""
        if self._client is None:
            self._client = get_firestore_client(project_id=self.project_id)

    def _service_ref(self, date: str) -> Any:
        self._ensure_client()
        return self._client.collection(self.service_details_collection).document(document_id(date))

    def _songs_ref(self, date: str) -> Any:
        self._ensure_client()
        return self._client.collection(self.service_songs_collection).document(document_id(date))

    # Service documents

    def find_by_date(self, date: str) -> Optional[Dict[str, Any]]:
        """Return the service document for a date, or None."""
        with _storage_errors("find_by_date", date):
            snapshot = self._service_ref(date).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def list_services(self) -> List[Dict[str, Any]]:
        self._ensure_client()
        with _storage_errors("list_services"):
            docs = list(self._client.collection(self.service_details_collection).stream())
        return [doc.to_dict() or {} for doc in docs]

    def upsert_by_date(self, date: str, document: Dict[str, Any]) -> None:
        """Replace the stored service document for a date."""
        payload = dict(document)
        payload["date"] = date
        with _storage_errors("upsert_by_date", date):
            self._service_ref(date).set(payload)

    def delete_by_date(self, date: str) -> bool:
        """Delete a service document; return False when it did not exist."""
        ref = self._service_ref(date)
        with _storage_errors("delete_by_date", date):
            if not ref.get().exists:
                return False
            ref.delete()
        return True

    # Orphan archive

    def insert_orphan_record(self, record: Dict[str, Any]) -> str:
        """Append an orphan record and return its document id."""
        self._ensure_client()
        with _storage_errors("insert_orphan_record", record.get("date")):
            ref = self._client.collection(self.orphaned_songs_collection).document()
            ref.set(dict(record))
        return ref.id

    def latest_orphan_record(self, date: str) -> Optional[Dict[str, Any]]:
        """Return the most recent orphan record for a date."""
        self._ensure_client()
        query = (
            self._client.collection(self.orphaned_songs_collection)
            .where("date", "==", date)
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
            .limit(1)
        )
        with _storage_errors("latest_orphan_record", date):
            docs = list(query.stream())
        if not docs:
            return None
        return docs[0].to_dict() or {}

    # Slot-indexed song selections

    def read_selection_index(self, date: str) -> Optional[Dict[str, Any]]:
        with _storage_errors("read_selection_index", date):
            snapshot = self._songs_ref(date).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def write_selection_index(self, date: str, record: Dict[str, Any]) -> None:
        """Replace the slot index record for a date wholesale."""
        payload = dict(record)
        payload["date"] = date
        with _storage_errors("write_selection_index", date):
            self._songs_ref(date).set(payload)

    def list_selection_indexes(self) -> List[Dict[str, Any]]:
        self._ensure_client()
        with _storage_errors("list_selection_indexes"):
            docs = list(self._client.collection(self.service_songs_collection).stream())
        return [doc.to_dict() or {} for doc in docs]
