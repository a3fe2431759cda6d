"""
Workflow Engine - The single entry point for application state changes

Flow for every action:

    catalog.get_or_raise      -> UnknownActionError
    state_store.get_or_raise  -> ApplicationNotFoundError
    _check_mutable            -> TerminalStateError
    guard.is_allowed          -> ForbiddenError
    resolver.resolve          -> typed validation errors
    state_store.apply         -> ConcurrencyError (retried once)
    ledger.append             -> LedgerWriteError (alarm, never swallowed)

Dependencies are passed in; `WorkflowEngine.build` wires the Mongo-backed
defaults.
"""

from typing import Any, List, Mapping, Optional, Sequence, Union

from pymongo.database import Database

from ..config.settings import Settings, settings as default_settings
from ..domain.models import Action, Application, Attachment, HistoryEntry, SubmitResult
from ..domain.enums import ActionCode
from ..domain.errors import (
    ConcurrencyError, ForbiddenError, LedgerWriteError, TerminalStateError
)
from ..repositories.action_repo import ActionRepository
from ..repositories.application_repo import ApplicationRepository
from ..repositories.history_repo import HistoryRepository
from ..repositories.user_repo import UserRepository
from .action_catalog import ActionCatalog
from .permission_guard import PermissionGuard
from .transition_resolver import TransitionResolver
from .history_ledger import HistoryLedger
from .state_store import ApplicationStateStore
from ..utils.idgen import generate_correlation_id
from ..utils.time import utc_now
from ..utils.logger import get_logger, set_correlation_id

logger = get_logger(__name__)

_AFTER_DECISION = frozenset({ActionCode.DISPOSE.value, ActionCode.CLOSE.value})


class WorkflowEngine:
    """
    Orchestrates one workflow action as a single unit of work

    Responsibilities:
    - Validate the action against the catalog
    - Enforce role authorization via PermissionGuard
    - Resolve the transition via TransitionResolver
    - Apply it with optimistic concurrency via ApplicationStateStore
    - Record it in the HistoryLedger
    """

    def __init__(
        self,
        catalog: ActionCatalog,
        guard: PermissionGuard,
        resolver: TransitionResolver,
        state_store: ApplicationStateStore,
        ledger: HistoryLedger,
        config: Optional[Settings] = None
    ):
        self.catalog = catalog
        self.guard = guard
        self.resolver = resolver
        self.state_store = state_store
        self.ledger = ledger
        self.config = config or default_settings

    @classmethod
    def build(cls, db: Optional[Database] = None, config: Optional[Settings] = None) -> "WorkflowEngine":
        """Wire the engine against a Mongo database"""
        config = config or default_settings
        user_repo = UserRepository(db)
        catalog = ActionCatalog.load(ActionRepository(db))
        guard = PermissionGuard.load(user_repo)
        ledger = HistoryLedger(HistoryRepository(db))
        resolver = TransitionResolver(user_repo, ledger, guard=guard, config=config)
        state_store = ApplicationStateStore(ApplicationRepository(db))
        return cls(catalog, guard, resolver, state_store, ledger, config=config)

    # =========================================================================
    # Submit
    # =========================================================================

    def submit(
        self,
        application_id: int,
        actor_user_id: int,
        actor_role_id: int,
        action_id: int,
        remarks: Optional[str],
        attachments: Optional[Sequence[Union[Attachment, Mapping[str, Any]]]] = None,
        next_user_id: Optional[int] = None,
        recommend: bool = True,
        correlation_id: Optional[str] = None
    ) -> SubmitResult:
        """
        Perform a workflow action on an application

        Args:
            application_id: Target application
            actor_user_id: Authenticated user
            actor_role_id: Authenticated user's role
            action_id: Catalog action ID
            remarks: Mandatory remarks
            attachments: Optional attachments
            next_user_id: Required for FORWARD and RE_ENQUIRY
            recommend: RECOMMEND polarity
            correlation_id: Request correlation ID, generated if absent

        Returns:
            SubmitResult with the new projection and history ID
        """
        correlation_id = correlation_id or generate_correlation_id()
        set_correlation_id(correlation_id)
        log_extra = {
            "application_id": application_id,
            "actor_user_id": actor_user_id,
            "correlation_id": correlation_id,
        }

        action = self.catalog.get_or_raise(action_id)
        log_extra["action"] = action.code

        retries = 0
        while True:
            application = self.state_store.get_or_raise(application_id)
            self._check_mutable(application, action)

            if not self.guard.is_allowed(actor_role_id, action.code, application.status):
                logger.warning(
                    f"Permission denied for {action.code} at {application.status.value}",
                    extra={**log_extra, "status": application.status.value}
                )
                raise ForbiddenError(
                    f"Your role is not allowed to {action.code} an application in {application.status.value}",
                    details={
                        "field": "action_id",
                        "rule": "role_authorization",
                        "action": action.code,
                        "status": application.status.value,
                        "role_id": actor_role_id,
                        "role": self.guard.role_code(actor_role_id),
                    }
                )

            transition = self.resolver.resolve(
                application,
                action,
                remarks,
                attachments=attachments,
                next_user_id=next_user_id,
                actor_role_id=actor_role_id,
                recommend=recommend
            )

            try:
                updated = self.state_store.apply(
                    application_id,
                    transition,
                    expected_status=application.status,
                    expected_version=application.version
                )
                break
            except ConcurrencyError as e:
                if retries >= self.config.conflict_retry_limit or self._stage_moved(application):
                    logger.warning(
                        f"Concurrency conflict on {action.code}, giving up",
                        extra={**log_extra, "status": application.status.value, "error_code": e.error_code}
                    )
                    raise
                retries += 1
                logger.warning(
                    f"Concurrency conflict on {action.code}, retrying (attempt {retries})",
                    extra=log_extra
                )

        entry = HistoryEntry(
            history_id=updated.version,
            application_id=application_id,
            action_id=action.action_id,
            action_code=action.code,
            actor_user_id=actor_user_id,
            actor_role_id=actor_role_id,
            previous_holder_id=transition.previous_holder_id,
            next_holder_id=transition.next_holder_id,
            from_status=transition.from_status,
            to_status=transition.to_status,
            remarks=transition.remarks,
            attachments=transition.attachments,
            created_at=utc_now(),
            correlation_id=correlation_id,
        )

        try:
            history_id = self.ledger.append(entry)
        except Exception as e:
            logger.critical(
                f"State changed but audit write failed for application {application_id}",
                exc_info=True,
                extra={
                    **log_extra,
                    "status": updated.status.value,
                    "history_id": entry.history_id,
                    "error_code": LedgerWriteError.error_code,
                }
            )
            raise LedgerWriteError(
                f"Application {application_id} was updated but its history entry could not be written. "
                f"Re-fetch and verify before continuing.",
                details={
                    "application_id": application_id,
                    "history_id": entry.history_id,
                    "committed_status": updated.status.value,
                    "committed_holder_id": updated.current_holder_id,
                    "cause": str(e),
                }
            ) from e

        logger.info(
            f"{action.code} performed successfully",
            extra={**log_extra, "status": updated.status.value, "history_id": history_id}
        )

        return SubmitResult(
            application_id=application_id,
            previous_holder=transition.previous_holder_id,
            current_holder=updated.current_holder_id,
            status=updated.status,
            history_id=history_id,
            application=updated,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def available_actions(self, role_id: int, application: Application) -> List[Action]:
        """Active actions the role may take on the application right now"""
        if application.status.is_terminal:
            return []
        actions = []
        for action in self.catalog.list_active():
            if application.status.is_decided and action.code.upper() not in _AFTER_DECISION:
                continue
            if self.guard.is_allowed(role_id, action.code, application.status):
                actions.append(action)
        return actions

    def _check_mutable(self, application: Application, action: Action) -> None:
        status = application.status
        if status.is_terminal or (status.is_decided and action.code.upper() not in _AFTER_DECISION):
            logger.warning(
                f"Rejected {action.code} on terminal application",
                extra={"application_id": application.application_id, "status": status.value}
            )
            raise TerminalStateError(
                f"Application {application.application_id} is {status.value}; no further {action.code} is possible",
                details={
                    "field": "status",
                    "rule": "not_terminal",
                    "status": status.value,
                    "action": action.code,
                }
            )

    def _stage_moved(self, observed: Application) -> bool:
        """True when a concurrent writer changed the status the actor decided on"""
        fresh = self.state_store.get(observed.application_id)
        return fresh is None or fresh.status != observed.status
