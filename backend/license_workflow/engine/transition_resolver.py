"""Transition Resolver - Compute the next state for an action"""
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError as ModelValidationError

from ..config.settings import Settings, settings as default_settings
from ..domain.models import Action, Application, Attachment, Transition, User
from ..domain.enums import ApplicationStatus, ActionCode
from ..domain.errors import (
    InvalidActionError, MissingRemarksError, MissingNextUserError, InvalidNextUserError,
    InvalidAttachmentError, IllegalFromStateError
)
from ..repositories.user_repo import UserRepository
from .history_ledger import HistoryLedger
from .permission_guard import PermissionGuard
from ..utils.logger import get_logger

logger = get_logger(__name__)

ATTACHMENT_FIELDS = ("name", "type", "content_type", "url")
ATTACHMENT_KEYS = frozenset(ATTACHMENT_FIELDS) | {"contentType"}


class HolderRule(str, Enum):
    """Where the application goes after the action"""
    UNCHANGED = "UNCHANGED"
    NEXT_USER = "NEXT_USER"
    ENQUIRY_USER = "ENQUIRY_USER"
    LAST_DIFFERING = "LAST_DIFFERING"


class TransitionRule(BaseModel):
    """One row of the transition table"""
    model_config = ConfigDict(frozen=True)

    from_statuses: FrozenSet[ApplicationStatus]
    to_status: Optional[ApplicationStatus] = Field(None, description="None keeps the current status")
    holder: HolderRule = HolderRule.UNCHANGED
    flag_updates: Dict[str, bool] = Field(default_factory=dict)


_OPEN = frozenset({
    ApplicationStatus.SUBMITTED, ApplicationStatus.PENDING, ApplicationStatus.UNDER_REVIEW
})
_IN_REVIEW = frozenset({ApplicationStatus.PENDING, ApplicationStatus.UNDER_REVIEW})
_DECIDED = frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED})
_CLEAR_ADVICE = {"is_recommended": False, "is_not_recommended": False}

TRANSITION_RULES: Dict[ActionCode, TransitionRule] = {
    ActionCode.FORWARD: TransitionRule(
        from_statuses=_OPEN,
        to_status=ApplicationStatus.UNDER_REVIEW,
        holder=HolderRule.NEXT_USER,
    ),
    ActionCode.APPROVE: TransitionRule(
        from_statuses=frozenset({ApplicationStatus.UNDER_REVIEW}),
        to_status=ApplicationStatus.APPROVED,
        flag_updates={"is_approved": True, "is_rejected": False, **_CLEAR_ADVICE},
    ),
    ActionCode.REJECT: TransitionRule(
        from_statuses=_OPEN,
        to_status=ApplicationStatus.REJECTED,
        flag_updates={"is_rejected": True, "is_approved": False, **_CLEAR_ADVICE},
    ),
    ActionCode.RETURN: TransitionRule(
        from_statuses=_IN_REVIEW,
        to_status=ApplicationStatus.PENDING,
        holder=HolderRule.LAST_DIFFERING,
    ),
    ActionCode.RE_ENQUIRY: TransitionRule(
        from_statuses=_IN_REVIEW,
        to_status=ApplicationStatus.UNDER_REVIEW,
        holder=HolderRule.ENQUIRY_USER,
    ),
    ActionCode.RED_FLAG: TransitionRule(from_statuses=_OPEN),
    ActionCode.DISPOSE: TransitionRule(
        from_statuses=_DECIDED,
        to_status=ApplicationStatus.DISPOSED,
    ),
    ActionCode.CLOSE: TransitionRule(
        from_statuses=_DECIDED,
        to_status=ApplicationStatus.CLOSED,
    ),
    ActionCode.RECOMMEND: TransitionRule(
        from_statuses=_IN_REVIEW,
        flag_updates={"is_recommended": True, "is_not_recommended": False},
    ),
    ActionCode.CANCEL: TransitionRule(
        from_statuses=frozenset({ApplicationStatus.SUBMITTED, ApplicationStatus.PENDING}),
        to_status=ApplicationStatus.CLOSED,
    ),
}


class TransitionResolver:
    """
    Resolve an action against the transition table

    Given the current application and an action:
    1. Find the rule for the action code
    2. Check remarks, attachments and the source status
    3. Resolve the next holder (next user, enquiry officer, previous holder)
    4. Return the Transition, or raise the typed rejection
    """

    def __init__(
        self,
        user_repo: UserRepository,
        ledger: HistoryLedger,
        guard: Optional[PermissionGuard] = None,
        config: Optional[Settings] = None
    ):
        self.user_repo = user_repo
        self.ledger = ledger
        self.guard = guard
        self.config = config or default_settings

    def get_rule(self, action_code: str) -> TransitionRule:
        try:
            return TRANSITION_RULES[ActionCode(action_code.upper())]
        except (ValueError, KeyError):
            raise InvalidActionError(
                f"No transition rule for action {action_code}",
                details={"field": "action", "rule": "transition_rule_exists", "action": action_code}
            )

    def resolve(
        self,
        application: Application,
        action: Action,
        remarks: Optional[str],
        attachments: Optional[Sequence[Union[Attachment, Mapping[str, Any]]]] = None,
        next_user_id: Optional[int] = None,
        actor_role_id: Optional[int] = None,
        recommend: bool = True
    ) -> Transition:
        """
        Resolve the transition for an action

        Args:
            application: Current projection
            action: Active catalog action
            remarks: Mandatory, non-empty
            attachments: Optional file references, models or raw mappings, each fully populated
            next_user_id: Target user for FORWARD / RE_ENQUIRY
            actor_role_id: Acting role, used for the forwarding hierarchy
            recommend: RECOMMEND polarity; False marks "not recommended"

        Returns:
            Transition to apply

        Raises:
            InvalidActionError, MissingRemarksError, IllegalFromStateError,
            InvalidAttachmentError, MissingNextUserError
        """
        rule = self.get_rule(action.code)
        code = ActionCode(action.code.upper())
        current_status = application.status

        if not remarks or not remarks.strip():
            raise MissingRemarksError(
                "Remarks are required for every workflow action",
                details={"field": "remarks", "rule": "non_empty", "action": code.value}
            )

        if current_status not in rule.from_statuses:
            raise IllegalFromStateError(
                f"{code.value} is not allowed from {current_status.value}",
                details={
                    "field": "status",
                    "rule": "legal_from_status",
                    "action": code.value,
                    "status": current_status.value,
                    "allowed_from": sorted(s.value for s in rule.from_statuses),
                }
            )

        resolved_attachments = self._validate_attachments(attachments or [])

        next_holder_id = self._resolve_holder(
            rule, code, application, next_user_id, actor_role_id
        )

        flag_updates = dict(rule.flag_updates)
        if code == ActionCode.RECOMMEND and not recommend:
            flag_updates = {"is_recommended": False, "is_not_recommended": True}

        if code == ActionCode.RED_FLAG:
            resolved_attachments.append(self._red_flag_tag(application.application_id))

        to_status = rule.to_status or current_status

        logger.info(
            f"Resolved transition: {current_status.value} -> {to_status.value}",
            extra={
                "application_id": application.application_id,
                "action": code.value,
                "status": to_status.value,
            }
        )

        return Transition(
            action_code=code,
            from_status=current_status,
            to_status=to_status,
            previous_holder_id=application.current_holder_id,
            next_holder_id=next_holder_id,
            requires_next_user=rule.holder in (HolderRule.NEXT_USER, HolderRule.ENQUIRY_USER),
            requires_remarks=True,
            flag_updates=flag_updates,
            remarks=remarks.strip(),
            attachments=resolved_attachments,
        )

    def _validate_attachments(
        self,
        attachments: Sequence[Union[Attachment, Mapping[str, Any]]]
    ) -> List[Attachment]:
        validated = []
        for index, attachment in enumerate(attachments):
            if not isinstance(attachment, Attachment):
                attachment = self._parse_attachment(index, attachment)
            missing = [f for f in ATTACHMENT_FIELDS if not str(getattr(attachment, f) or "").strip()]
            if missing:
                raise InvalidAttachmentError(
                    f"Attachment {index} is missing {', '.join(missing)}",
                    details={
                        "field": "attachments",
                        "rule": "all_fields_present",
                        "index": index,
                        "missing": missing,
                    }
                )
            validated.append(attachment)
        return validated

    def _parse_attachment(self, index: int, raw: Any) -> Attachment:
        """Build an Attachment from a raw mapping; null values count as missing"""
        if not isinstance(raw, Mapping):
            raise InvalidAttachmentError(
                f"Attachment {index} must be an object",
                details={"field": "attachments", "rule": "object", "index": index}
            )

        unknown = sorted(str(k) for k in raw if k not in ATTACHMENT_KEYS)
        if unknown:
            raise InvalidAttachmentError(
                f"Attachment {index} has unknown fields {', '.join(unknown)}",
                details={
                    "field": "attachments",
                    "rule": "known_fields",
                    "index": index,
                    "unknown": unknown,
                }
            )

        try:
            return Attachment.model_validate({k: v for k, v in raw.items() if v is not None})
        except ModelValidationError as e:
            invalid = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise InvalidAttachmentError(
                f"Attachment {index} has non-text values in {', '.join(invalid)}",
                details={
                    "field": "attachments",
                    "rule": "text_fields",
                    "index": index,
                    "invalid": invalid,
                }
            ) from e

    def _resolve_holder(
        self,
        rule: TransitionRule,
        code: ActionCode,
        application: Application,
        next_user_id: Optional[int],
        actor_role_id: Optional[int]
    ) -> Optional[int]:
        if rule.holder == HolderRule.UNCHANGED:
            return application.current_holder_id

        if rule.holder == HolderRule.LAST_DIFFERING:
            previous = self.ledger.last_differing_holder(
                application.application_id,
                application.current_holder_id,
                application.initial_holder_id
            )
            if previous is None:
                raise IllegalFromStateError(
                    "There is no previous holder to return the application to",
                    details={"field": "status", "rule": "previous_holder_exists", "action": code.value}
                )
            return previous

        user = self._require_active_user(code, next_user_id)

        if rule.holder == HolderRule.ENQUIRY_USER:
            enquiry_role = self.config.enquiry_role_code.upper()
            role_code = self.guard.role_code(user.role_id) if self.guard and user.role_id is not None else None
            if role_code != enquiry_role:
                raise InvalidNextUserError(
                    f"Re-enquiry must go to a {enquiry_role} officer",
                    details={
                        "field": "next_user_id",
                        "rule": "enquiry_role",
                        "next_user_id": user.user_id,
                        "expected_role": enquiry_role,
                        "actual_role": role_code,
                    }
                )
            return user.user_id

        if (
            self.config.enforce_forward_hierarchy
            and self.guard is not None
            and actor_role_id is not None
            and not self.guard.can_forward_to(actor_role_id, user.role_id)
        ):
            raise InvalidNextUserError(
                "Your role cannot forward to this user's role",
                details={
                    "field": "next_user_id",
                    "rule": "forward_hierarchy",
                    "next_user_id": user.user_id,
                    "from_role": self.guard.role_code(actor_role_id),
                    "to_role": self.guard.role_code(user.role_id) if user.role_id is not None else None,
                }
            )
        return user.user_id

    def _require_active_user(self, code: ActionCode, next_user_id: Optional[int]) -> User:
        if next_user_id is None:
            raise MissingNextUserError(
                f"next_user_id is required for {code.value}",
                details={"field": "next_user_id", "rule": "required", "action": code.value}
            )
        user = self.user_repo.get_user(next_user_id)
        if user is None or not user.is_active:
            raise MissingNextUserError(
                f"User {next_user_id} was not found or is inactive",
                details={
                    "field": "next_user_id",
                    "rule": "active_user",
                    "action": code.value,
                    "next_user_id": next_user_id,
                }
            )
        return user

    def _red_flag_tag(self, application_id: int) -> Attachment:
        return Attachment(
            name="red-flag",
            type=self.config.red_flag_attachment_type,
            content_type="application/x-workflow-flag",
            url=f"urn:workflow:application:{application_id}:red-flag",
        )
