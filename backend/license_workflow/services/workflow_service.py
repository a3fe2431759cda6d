"""Workflow Service - Collaborator-facing operations around the engine"""
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..domain.models import (
    Action, ActorContext, Application, ApplicationState, Attachment, ConsistencyReport,
    HistoryEntry, SubmitResult
)
from ..domain.enums import ApplicationStatus
from ..domain.errors import NotFoundError
from ..engine.engine import WorkflowEngine
from ..utils.logger import get_logger

logger = get_logger(__name__)

_STATUSES = list(ApplicationStatus)


class WorkflowService:
    """Service for workflow operations"""

    def __init__(self, engine: WorkflowEngine):
        self.engine = engine

    # =========================================================================
    # Mutations
    # =========================================================================

    def register_application(
        self,
        application_id: int,
        initial_holder_id: int,
        applicant_user_id: Optional[int] = None
    ) -> Application:
        """Intake hook: create the projection in SUBMITTED"""
        return self.engine.state_store.initialize(application_id, initial_holder_id, applicant_user_id)

    def submit(
        self,
        actor: ActorContext,
        application_id: int,
        action_id: int,
        remarks: Optional[str],
        attachments: Optional[Sequence[Union[Attachment, Mapping[str, Any]]]] = None,
        next_user_id: Optional[int] = None,
        recommend: bool = True,
        correlation_id: Optional[str] = None
    ) -> SubmitResult:
        """Submit an action on behalf of an authenticated actor"""
        return self.engine.submit(
            application_id=application_id,
            actor_user_id=actor.user_id,
            actor_role_id=actor.role_id,
            action_id=action_id,
            remarks=remarks,
            attachments=attachments,
            next_user_id=next_user_id,
            recommend=recommend,
            correlation_id=correlation_id,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_statuses_and_actions(self, item_id: Optional[int] = None) -> Dict[str, Any]:
        """
        All statuses and active actions, or the status and action sharing an ID.

        Status IDs are 1-based positions in the workflow order.
        """
        if item_id is None:
            return {
                "statuses": [
                    {"id": i, "code": s.value} for i, s in enumerate(_STATUSES, start=1)
                ],
                "actions": [a.model_dump() for a in self.engine.catalog.list_active()],
            }

        status = _STATUSES[item_id - 1] if 1 <= item_id <= len(_STATUSES) else None
        action = self.engine.catalog.lookup(item_id)
        if status is None and action is None:
            raise NotFoundError(
                f"No status or action found for id {item_id}",
                details={"id": item_id}
            )
        return {
            "status": {"id": item_id, "code": status.value} if status else None,
            "action": action.model_dump() if action else None,
        }

    def get_available_actions(self, role_id: int, application_id: int) -> List[Action]:
        """Actions the role can take on the application in its current status"""
        application = self.engine.state_store.get_or_raise(application_id)
        return self.engine.available_actions(role_id, application)

    def get_application(self, application_id: int) -> Application:
        return self.engine.state_store.get_or_raise(application_id)

    def get_work_queue(self, holder_id: int) -> List[Application]:
        """Non-terminal applications currently held by a user"""
        open_statuses = [s for s in ApplicationStatus if not s.is_terminal]
        return self.engine.state_store.repo.list_for_holder(holder_id, open_statuses)

    def get_history(self, application_id: int) -> List[HistoryEntry]:
        """Full audit trail, oldest first"""
        self.engine.state_store.get_or_raise(application_id)
        return self.engine.ledger.list_for_application(application_id)

    def get_last_stable_state(self, application_id: int) -> Optional[ApplicationState]:
        """State before the most recent transition, None if there is none"""
        application = self.engine.state_store.get_or_raise(application_id)
        return self.engine.ledger.state_before_last(application_id, application.initial_holder_id)

    def verify_consistency(self, application_id: int) -> ConsistencyReport:
        """
        Replay the ledger and compare it with the stored projection.

        A projection whose version is ahead of the ledger is the footprint
        of a LedgerWriteError.
        """
        application = self.engine.state_store.get_or_raise(application_id)
        states = self.engine.ledger.replay(application_id, application.initial_holder_id)
        replayed = states[-1]
        entries = len(states) - 1
        issues: List[str] = []

        if replayed.status != application.status:
            issues.append(
                f"status mismatch: stored {application.status.value}, replayed {replayed.status.value}"
            )
        if replayed.holder_id != application.current_holder_id:
            issues.append(
                f"holder mismatch: stored {application.current_holder_id}, replayed {replayed.holder_id}"
            )
        if application.version != entries:
            issues.append(
                f"ledger gap: projection at version {application.version}, ledger has {entries} entries"
            )
        if replayed.history_id is not None and replayed.history_id != application.version:
            issues.append(
                f"last history id {replayed.history_id} does not match version {application.version}"
            )
        issues.extend(self._flag_issues(application))

        if issues:
            logger.error(
                f"Consistency check failed for application {application_id}: {'; '.join(issues)}",
                extra={"application_id": application_id, "status": application.status.value}
            )

        return ConsistencyReport(
            application_id=application_id,
            is_consistent=not issues,
            stored_status=application.status,
            stored_holder_id=application.current_holder_id,
            replayed_status=replayed.status,
            replayed_holder_id=replayed.holder_id,
            stored_version=application.version,
            ledger_entries=entries,
            issues=issues,
        )

    @staticmethod
    def _flag_issues(application: Application) -> List[str]:
        issues = []
        status = application.status
        if status == ApplicationStatus.APPROVED and not (application.is_approved and not application.is_rejected):
            issues.append("APPROVED application must carry only is_approved")
        if status == ApplicationStatus.REJECTED and not (application.is_rejected and not application.is_approved):
            issues.append("REJECTED application must carry only is_rejected")
        if status in (ApplicationStatus.PENDING, ApplicationStatus.UNDER_REVIEW, ApplicationStatus.SUBMITTED):
            if application.is_approved or application.is_rejected:
                issues.append(f"{status.value} application carries a decision flag")
        if application.is_approved and application.is_rejected:
            issues.append("is_approved and is_rejected are both set")
        if application.is_recommended and application.is_not_recommended:
            issues.append("is_recommended and is_not_recommended are both set")
        if application.is_pending != (status == ApplicationStatus.PENDING):
            issues.append("is_pending does not match status")
        return issues
