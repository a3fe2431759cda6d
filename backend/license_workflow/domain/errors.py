"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authorization Errors
class AuthorizationError(DomainError):
    """User lacks permission for action"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class ForbiddenError(AuthorizationError):
    """Acting role may not perform this action at the current status"""
    error_code = "FORBIDDEN"


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class UnknownActionError(ValidationError):
    """Action id is not in the catalog or is inactive"""
    error_code = "UNKNOWN_ACTION"


class InvalidActionError(ValidationError):
    """Action has no transition rule"""
    error_code = "INVALID_ACTION"


class MissingRemarksError(ValidationError):
    """Remarks are mandatory on every transition"""
    error_code = "MISSING_REMARKS"


class MissingNextUserError(ValidationError):
    """Action routes to a user but none was resolvable"""
    error_code = "MISSING_NEXT_USER"


class InvalidNextUserError(MissingNextUserError):
    """Next user exists but is not an allowed target"""
    error_code = "INVALID_NEXT_USER"


class InvalidAttachmentError(ValidationError):
    """Attachment is malformed or missing a required field"""
    error_code = "INVALID_ATTACHMENT"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class ApplicationNotFoundError(NotFoundError):
    """Application not found"""
    error_code = "APPLICATION_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """Optimistic concurrency conflict"""
    error_code = "CONCURRENCY_CONFLICT"


class InvalidStateError(ConflictError):
    """Action not valid for current state"""
    error_code = "INVALID_STATE"


class TerminalStateError(InvalidStateError):
    """Application is disposed or closed"""
    error_code = "TERMINAL_STATE"


class IllegalFromStateError(InvalidStateError):
    """Action is not legal from the current status"""
    error_code = "ILLEGAL_FROM_STATE"


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


# Engine Errors
class EngineError(DomainError):
    """Workflow engine error"""
    error_code = "ENGINE_ERROR"
    http_status = 500


class LedgerWriteError(EngineError):
    """
    State changed but the audit entry could not be written.

    Callers must re-fetch and re-verify the application; the projection
    is ahead of the ledger until the gap is reconciled.
    """
    error_code = "LEDGER_WRITE_FAILURE"
