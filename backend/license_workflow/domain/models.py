"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .enums import ApplicationStatus, ActionCode


# ============================================================================
# Reference Data
# ============================================================================

class Action(BaseModel):
    """Catalog entry for a workflow action"""
    model_config = ConfigDict(extra="forbid")

    action_id: int = Field(..., description="Stable numeric action ID")
    code: str = Field(..., description="Stable action code, e.g. FORWARD")
    name: str = Field(..., description="Human readable name")
    description: Optional[str] = None
    is_active: bool = Field(default=True)


class Role(BaseModel):
    """Reviewer role"""
    model_config = ConfigDict(extra="forbid")

    role_id: int
    code: str
    name: str
    description: Optional[str] = None
    level: int = Field(default=0, description="Display/escalation hint only, never authority")


class User(BaseModel):
    """Directory user as seen by the engine"""
    model_config = ConfigDict(extra="forbid")

    user_id: int
    username: str
    role_id: Optional[int] = None
    is_active: bool = True


class ActorContext(BaseModel):
    """Authenticated actor supplied by the web layer"""
    model_config = ConfigDict(extra="forbid")

    user_id: int = Field(..., description="Acting user ID")
    role_id: int = Field(..., description="Acting role ID")


# ============================================================================
# Application Projection
# ============================================================================

class Attachment(BaseModel):
    """File reference attached to a workflow action"""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = ""
    type: str = ""
    content_type: str = Field(default="", alias="contentType")
    url: str = ""


class Application(BaseModel):
    """Mutable workflow projection of a license application"""
    model_config = ConfigDict(extra="forbid")

    application_id: int
    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    current_holder_id: Optional[int] = Field(None, description="Null only before initiation")
    initial_holder_id: Optional[int] = Field(None, description="Holder recorded by intake")
    applicant_user_id: Optional[int] = None

    is_approved: bool = False
    is_rejected: bool = False
    is_pending: bool = False
    is_recommended: bool = False
    is_not_recommended: bool = False

    version: int = Field(default=0, description="Number of applied transitions")
    created_at: datetime
    updated_at: datetime


class Transition(BaseModel):
    """Computed, never stored: what applying an action will do"""
    model_config = ConfigDict(extra="forbid")

    action_code: ActionCode
    from_status: ApplicationStatus
    to_status: ApplicationStatus
    previous_holder_id: Optional[int] = None
    next_holder_id: Optional[int] = None
    requires_next_user: bool = False
    requires_remarks: bool = True
    flag_updates: Dict[str, bool] = Field(default_factory=dict)
    remarks: str
    attachments: List[Attachment] = Field(default_factory=list)


# ============================================================================
# History
# ============================================================================

class HistoryEntry(BaseModel):
    """Append-only audit record, one per applied transition"""
    model_config = ConfigDict(extra="forbid")

    history_id: int = Field(..., description="Strictly increasing per application")
    application_id: int
    action_id: int
    action_code: str
    actor_user_id: int
    actor_role_id: Optional[int] = None
    previous_holder_id: Optional[int] = None
    next_holder_id: Optional[int] = None
    from_status: ApplicationStatus
    to_status: ApplicationStatus
    remarks: str
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime
    correlation_id: Optional[str] = None


class ApplicationState(BaseModel):
    """Status and holder at one point of a ledger replay"""
    status: ApplicationStatus
    holder_id: Optional[int] = None
    history_id: Optional[int] = Field(None, description="None for the initial pseudo-entry")


# ============================================================================
# Results
# ============================================================================

class SubmitResult(BaseModel):
    """Outcome of a successful Submit"""
    application_id: int
    previous_holder: Optional[int] = None
    current_holder: Optional[int] = None
    status: ApplicationStatus
    history_id: int
    application: Application


class ConsistencyReport(BaseModel):
    """Comparison of stored projection against a ledger replay"""
    application_id: int
    is_consistent: bool
    stored_status: ApplicationStatus
    stored_holder_id: Optional[int] = None
    replayed_status: ApplicationStatus
    replayed_holder_id: Optional[int] = None
    stored_version: int
    ledger_entries: int
    issues: List[str] = Field(default_factory=list)
