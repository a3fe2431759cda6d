"""Application Repository - Data access for the application projection"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ReturnDocument, ASCENDING

from .mongo_client import get_collection
from ..domain.models import Application
from ..domain.enums import ApplicationStatus
from ..domain.errors import ApplicationNotFoundError, ConcurrencyError, AlreadyExistsError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _to_doc(application: Application) -> Dict[str, Any]:
    # Keep datetimes native so Mongo can sort on them
    doc = application.model_dump()
    doc["status"] = application.status.value
    return doc


def _from_doc(doc: Dict[str, Any]) -> Application:
    doc.pop("_id", None)
    return Application.model_validate(doc)


class ApplicationRepository:
    """Repository for application projection operations"""

    def __init__(self, db: Optional[Database] = None):
        self._applications: Collection = get_collection("applications", db)

    def create_application(self, application: Application) -> Application:
        """Insert a new projection (intake only)"""
        if self._applications.find_one({"application_id": application.application_id}):
            raise AlreadyExistsError(
                f"Application {application.application_id} already exists",
                details={"application_id": application.application_id}
            )
        doc = _to_doc(application)
        doc["_id"] = application.application_id
        self._applications.insert_one(doc)
        logger.info(
            f"Created application: {application.application_id}",
            extra={"application_id": application.application_id, "status": application.status.value}
        )
        return application

    def get_application(self, application_id: int) -> Optional[Application]:
        """Get application by ID"""
        doc = self._applications.find_one({"application_id": application_id})
        if doc:
            return _from_doc(doc)
        return None

    def get_application_or_raise(self, application_id: int) -> Application:
        """Get application by ID or raise error"""
        application = self.get_application(application_id)
        if not application:
            raise ApplicationNotFoundError(
                f"Application {application_id} not found",
                details={"application_id": application_id}
            )
        return application

    def update_application(
        self,
        application_id: int,
        updates: Dict[str, Any],
        expected_status: ApplicationStatus,
        expected_version: int
    ) -> Application:
        """
        Compare-and-swap update of the projection.

        The filter pins both the status and the version the caller observed,
        so a concurrent writer that landed first makes this a no-op.
        """
        updates = dict(updates)
        updates["updated_at"] = utc_now()
        updates["version"] = expected_version + 1

        result = self._applications.find_one_and_update(
            {
                "application_id": application_id,
                "status": expected_status.value,
                "version": expected_version,
            },
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )

        if result is None:
            current = self._applications.find_one({"application_id": application_id})
            if current:
                raise ConcurrencyError(
                    f"Application {application_id} was modified. Please refresh and try again.",
                    details={
                        "application_id": application_id,
                        "expected_status": expected_status.value,
                        "expected_version": expected_version,
                        "actual_status": current.get("status"),
                        "actual_version": current.get("version"),
                    }
                )
            raise ApplicationNotFoundError(
                f"Application {application_id} not found",
                details={"application_id": application_id}
            )

        logger.info(f"Updated application: {application_id}", extra={"application_id": application_id})
        return _from_doc(result)

    def list_for_holder(
        self,
        holder_id: int,
        statuses: Optional[List[ApplicationStatus]] = None
    ) -> List[Application]:
        """Applications currently held by a user (work queue)"""
        query: Dict[str, Any] = {"current_holder_id": holder_id}
        if statuses:
            query["status"] = {"$in": [s.value for s in statuses]}
        return [
            _from_doc(doc)
            for doc in self._applications.find(query).sort("application_id", ASCENDING)
        ]
