"""Error kinds raised by the billing core.

Every error carries a human readable ``message``, a stable ``error_code``
and optional ``details``. The HTTP layer maps each kind to a status code;
services never retry or swallow them.
"""
from typing import Any, Dict, Optional


class BillbookError(Exception):
    """Base exception for billing core errors."""
    default_code = "BILLBOOK_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BillbookError):
    """Input rejected before any persistence call was made."""
    default_code = "VALIDATION_ERROR"


class ChallanLockedError(ValidationError):
    """A billed delivery challan cannot be edited or deleted."""
    default_code = "CHALLAN_LOCKED"


class NotFoundError(BillbookError):
    """Referenced record does not exist for the current owner."""
    default_code = "NOT_FOUND"


class NotAuthenticatedError(BillbookError):
    """Mutating call attempted without an owning identity."""
    default_code = "NOT_AUTHENTICATED"


class PersistenceError(BillbookError):
    """A create/update/delete call against storage failed."""
    default_code = "PERSISTENCE_ERROR"


class InconsistentStateError(PersistenceError):
    """A multi-step operation failed and could not be fully undone.

    ``details["unrepaired"]`` lists the compensating steps that failed.
    """
    default_code = "INCONSISTENT_STATE"
