"""Permission Guard - Table-driven authorization for workflow actions"""
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Set, Tuple, Union

from ..domain.models import Role
from ..domain.enums import ApplicationStatus, ActionCode, RoleCode
from ..repositories.user_repo import UserRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)

PolicyKey = Tuple[ApplicationStatus, ActionCode]

_REVIEWERS = frozenset({
    RoleCode.ZS, RoleCode.SHO, RoleCode.ACP, RoleCode.DCP, RoleCode.AS,
    RoleCode.ADO, RoleCode.CADO, RoleCode.JTCP, RoleCode.CP,
    RoleCode.ARMS_SUPDT, RoleCode.ARMS_SEAT, RoleCode.ACO, RoleCode.ADMIN,
})
_DECIDERS = frozenset({RoleCode.DCP, RoleCode.CP})
_ADVISERS = frozenset({RoleCode.ACP, RoleCode.DCP, RoleCode.AS, RoleCode.CADO, RoleCode.JTCP})
_ENQUIRY_ORDERERS = frozenset({RoleCode.ACP, RoleCode.DCP})
_INTAKE = frozenset({RoleCode.ZS, RoleCode.ADMIN})
_CLOSERS = frozenset({RoleCode.DCP, RoleCode.CP, RoleCode.ARMS_SUPDT, RoleCode.ADMIN})

# (status, action) -> roles allowed. Anything not listed is denied.
# ADMIN holds no APPROVE/REJECT rights after intake.
DEFAULT_POLICY: Dict[PolicyKey, FrozenSet[RoleCode]] = {
    (ApplicationStatus.SUBMITTED, ActionCode.FORWARD): _INTAKE,
    (ApplicationStatus.SUBMITTED, ActionCode.REJECT): _INTAKE | _DECIDERS,
    (ApplicationStatus.SUBMITTED, ActionCode.CANCEL): _INTAKE,
    (ApplicationStatus.SUBMITTED, ActionCode.RED_FLAG): _REVIEWERS,

    (ApplicationStatus.PENDING, ActionCode.FORWARD): _REVIEWERS,
    (ApplicationStatus.PENDING, ActionCode.RETURN): _REVIEWERS,
    (ApplicationStatus.PENDING, ActionCode.RE_ENQUIRY): _ENQUIRY_ORDERERS,
    (ApplicationStatus.PENDING, ActionCode.RECOMMEND): _ADVISERS,
    (ApplicationStatus.PENDING, ActionCode.REJECT): _DECIDERS,
    (ApplicationStatus.PENDING, ActionCode.CANCEL): _INTAKE,
    (ApplicationStatus.PENDING, ActionCode.RED_FLAG): _REVIEWERS,

    (ApplicationStatus.UNDER_REVIEW, ActionCode.FORWARD): _REVIEWERS,
    (ApplicationStatus.UNDER_REVIEW, ActionCode.RETURN): _REVIEWERS,
    (ApplicationStatus.UNDER_REVIEW, ActionCode.RE_ENQUIRY): _ENQUIRY_ORDERERS,
    (ApplicationStatus.UNDER_REVIEW, ActionCode.RECOMMEND): _ADVISERS,
    (ApplicationStatus.UNDER_REVIEW, ActionCode.APPROVE): _DECIDERS,
    (ApplicationStatus.UNDER_REVIEW, ActionCode.REJECT): _DECIDERS,
    (ApplicationStatus.UNDER_REVIEW, ActionCode.RED_FLAG): _REVIEWERS,

    (ApplicationStatus.APPROVED, ActionCode.DISPOSE): _CLOSERS,
    (ApplicationStatus.APPROVED, ActionCode.CLOSE): _CLOSERS,
    (ApplicationStatus.REJECTED, ActionCode.DISPOSE): _CLOSERS,
    (ApplicationStatus.REJECTED, ActionCode.CLOSE): _CLOSERS,
}


def _code(value: Union[str, Enum]) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value).upper()


class PermissionGuard:
    """
    Permission enforcement for workflow actions

    Rules:
    - Authority comes only from the (status, action) table, never from role level
    - Unknown roles, statuses or actions are denied
    - Forwarding targets follow the role hierarchy pairs
    """

    def __init__(
        self,
        roles: Iterable[Role],
        policy: Optional[Mapping[PolicyKey, Iterable[str]]] = None,
        forward_targets: Optional[Mapping[int, Set[int]]] = None
    ):
        self._role_codes: Dict[int, str] = {r.role_id: r.code.upper() for r in roles}
        source = DEFAULT_POLICY if policy is None else policy
        self._policy: Dict[Tuple[str, str], FrozenSet[str]] = {
            (ApplicationStatus(status).value, ActionCode(code).value): frozenset(
                _code(role) for role in allowed
            )
            for (status, code), allowed in source.items()
        }
        self._forward_targets: Dict[int, Set[int]] = {
            k: set(v) for k, v in (forward_targets or {}).items()
        }

    @classmethod
    def load(
        cls,
        user_repo: UserRepository,
        policy: Optional[Mapping[PolicyKey, Iterable[str]]] = None
    ) -> "PermissionGuard":
        """Build a guard from persisted roles and hierarchy"""
        roles = user_repo.list_roles()
        forward_targets = {r.role_id: user_repo.get_forward_targets(r.role_id) for r in roles}
        return cls(roles, policy=policy, forward_targets=forward_targets)

    def role_code(self, role_id: int) -> Optional[str]:
        return self._role_codes.get(role_id)

    def allowed_roles(self, action_code: str, status: ApplicationStatus) -> FrozenSet[str]:
        """Role codes permitted for an action at a status"""
        return self._policy.get((ApplicationStatus(status).value, _code(action_code)), frozenset())

    def is_allowed(
        self,
        acting_role_id: int,
        action_code: str,
        current_status: ApplicationStatus
    ) -> bool:
        """Check if the acting role may perform the action at this status"""
        role_code = self._role_codes.get(acting_role_id)
        if role_code is None:
            logger.warning(f"Permission check for unknown role {acting_role_id}")
            return False

        allowed = self.allowed_roles(action_code, current_status)
        result = role_code in allowed
        logger.debug(
            f"Permission check: role={role_code}, action={_code(action_code)}, "
            f"status={ApplicationStatus(current_status).value}, result={result}"
        )
        return result

    def can_forward_to(self, from_role_id: int, to_role_id: Optional[int]) -> bool:
        """Check the forwarding hierarchy"""
        if to_role_id is None:
            return False
        return to_role_id in self._forward_targets.get(from_role_id, set())
