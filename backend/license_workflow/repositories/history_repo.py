"""History Repository - Data access for workflow history (append-only)"""
from typing import Any, Dict, Iterator, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..domain.models import HistoryEntry
from ..domain.errors import AlreadyExistsError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _to_doc(entry: HistoryEntry) -> Dict[str, Any]:
    doc = entry.model_dump()
    doc["from_status"] = entry.from_status.value
    doc["to_status"] = entry.to_status.value
    doc["_id"] = f"{entry.application_id}:{entry.history_id}"
    return doc


def _from_doc(doc: Dict[str, Any]) -> HistoryEntry:
    doc.pop("_id", None)
    return HistoryEntry.model_validate(doc)


class HistoryRepository:
    """Repository for history entries. There is no update or delete."""

    def __init__(self, db: Optional[Database] = None):
        self._history: Collection = get_collection("workflow_history", db)

    def insert_entry(self, entry: HistoryEntry) -> HistoryEntry:
        """Insert one entry; a taken (application_id, history_id) raises AlreadyExistsError"""
        try:
            self._history.insert_one(_to_doc(entry))
        except DuplicateKeyError as e:
            raise AlreadyExistsError(
                f"History entry {entry.history_id} already exists for application {entry.application_id}",
                details={"application_id": entry.application_id, "history_id": entry.history_id}
            ) from e
        logger.info(
            f"Appended history entry: {entry.action_code}",
            extra={
                "application_id": entry.application_id,
                "history_id": entry.history_id,
                "action": entry.action_code,
                "actor_user_id": entry.actor_user_id,
            }
        )
        return entry

    def iter_entries(self, application_id: int) -> Iterator[HistoryEntry]:
        """Entries for an application, oldest first"""
        cursor = self._history.find({"application_id": application_id}).sort("history_id", ASCENDING)
        for doc in cursor:
            yield _from_doc(doc)

    def get_last_entry(self, application_id: int) -> Optional[HistoryEntry]:
        """Most recent entry for an application"""
        cursor = self._history.find({"application_id": application_id}).sort("history_id", DESCENDING).limit(1)
        for doc in cursor:
            return _from_doc(doc)
        return None

    def count_entries(self, application_id: int) -> int:
        """Count entries for an application"""
        return self._history.count_documents({"application_id": application_id})
