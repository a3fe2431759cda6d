"""Application State Store - Owns the mutable application projection"""
from typing import Any, Dict, Optional

from ..domain.models import Application, Transition
from ..domain.enums import ApplicationStatus
from ..repositories.application_repo import ApplicationRepository
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ApplicationStateStore:
    """
    Applies resolved transitions to the projection.

    Every mutation goes through `apply`, which is a compare-and-swap on
    (status, version): if another actor's transition committed since the
    caller loaded the application, ConcurrencyError is raised and nothing
    is written.
    """

    def __init__(self, repo: ApplicationRepository):
        self.repo = repo

    def initialize(
        self,
        application_id: int,
        initial_holder_id: int,
        applicant_user_id: Optional[int] = None
    ) -> Application:
        """Register a freshly submitted application (intake hook)"""
        now = utc_now()
        application = Application(
            application_id=application_id,
            status=ApplicationStatus.SUBMITTED,
            current_holder_id=initial_holder_id,
            initial_holder_id=initial_holder_id,
            applicant_user_id=applicant_user_id,
            version=0,
            created_at=now,
            updated_at=now,
        )
        return self.repo.create_application(application)

    def get(self, application_id: int) -> Optional[Application]:
        return self.repo.get_application(application_id)

    def get_or_raise(self, application_id: int) -> Application:
        return self.repo.get_application_or_raise(application_id)

    def apply(
        self,
        application_id: int,
        transition: Transition,
        expected_status: ApplicationStatus,
        expected_version: int
    ) -> Application:
        """Apply a transition atomically, or raise ConcurrencyError"""
        updates = self.derive_updates(transition)
        application = self.repo.update_application(
            application_id,
            updates,
            expected_status=expected_status,
            expected_version=expected_version
        )
        logger.info(
            f"Applied {transition.action_code.value}: "
            f"{transition.from_status.value} -> {transition.to_status.value}",
            extra={
                "application_id": application_id,
                "action": transition.action_code.value,
                "status": application.status.value,
            }
        )
        return application

    @staticmethod
    def derive_updates(transition: Transition) -> Dict[str, Any]:
        """Field updates for a transition, including recomputed flags"""
        updates: Dict[str, Any] = {
            "status": transition.to_status.value,
            "current_holder_id": transition.next_holder_id,
            "is_pending": transition.to_status == ApplicationStatus.PENDING,
        }
        updates.update(transition.flag_updates)
        return updates
