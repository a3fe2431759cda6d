"""Domain Enumerations - Status, action and role definitions"""
from enum import Enum


class ApplicationStatus(str, Enum):
    """Workflow status of a license application"""
    SUBMITTED = "SUBMITTED"
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    DISPOSED = "DISPOSED"
    CLOSED = "CLOSED"

    @property
    def is_terminal(self) -> bool:
        """No further Submit calls are accepted"""
        return self in TERMINAL_STATUSES

    @property
    def is_decided(self) -> bool:
        """Approved or rejected; only DISPOSE/CLOSE may follow"""
        return self in DECIDED_STATUSES


TERMINAL_STATUSES = frozenset({ApplicationStatus.DISPOSED, ApplicationStatus.CLOSED})
DECIDED_STATUSES = frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED})


class ActionCode(str, Enum):
    """Stable codes for workflow actions"""
    FORWARD = "FORWARD"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    RETURN = "RETURN"
    RE_ENQUIRY = "RE_ENQUIRY"
    RED_FLAG = "RED_FLAG"
    DISPOSE = "DISPOSE"
    CLOSE = "CLOSE"
    RECOMMEND = "RECOMMEND"
    CANCEL = "CANCEL"


class RoleCode(str, Enum):
    """Seeded role codes"""
    APPLICANT = "APPLICANT"
    ZS = "ZS"  # Zonal Superintendent
    SHO = "SHO"  # Station House Officer
    ACP = "ACP"  # Assistant Commissioner of Police
    DCP = "DCP"  # Deputy Commissioner of Police
    AS = "AS"  # Arms Superintendent
    ADO = "ADO"  # Administrative Officer
    CADO = "CADO"  # Chief Administrative Officer
    JTCP = "JTCP"  # Joint Commissioner of Police
    CP = "CP"  # Commissioner of Police
    ARMS_SUPDT = "ARMS_SUPDT"
    ARMS_SEAT = "ARMS_SEAT"
    ACO = "ACO"  # Assistant Compliance Officer
    ADMIN = "ADMIN"
