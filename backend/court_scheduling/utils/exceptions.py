"""
Custom exception classes

Domain outcomes of the scheduling engine. Each is an HTTPException so the
API layer can let them propagate untouched.
"""
from fastapi import HTTPException


class SchedulingError(HTTPException):
    """Base class for scheduling-engine errors"""
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


# ----------------------------------------------------------------------------
# NotFound
# ----------------------------------------------------------------------------

class NotFoundError(SchedulingError):
    status_code = 404


class CaseNotFoundError(NotFoundError):
    """Raised when case doesn't exist"""
    def __init__(self, case_id: str):
        super().__init__(f"Case {case_id} not found")


class ScheduleRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str):
        super().__init__(f"Schedule request {request_id} not found")


class AdjournmentRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str):
        super().__init__(f"Adjournment request {request_id} not found")


# ----------------------------------------------------------------------------
# Conflict
# ----------------------------------------------------------------------------

class ConflictError(SchedulingError):
    status_code = 409


class SlotConflictError(ConflictError):
    """Raised when the requested window overlaps an active hearing"""
    def __init__(self, detail: str = "Time slot is already occupied"):
        super().__init__(detail)


class AlreadyScheduledError(ConflictError):
    def __init__(self):
        super().__init__("This case has already been scheduled")


class DuplicatePendingRequestError(ConflictError):
    def __init__(self):
        super().__init__("There is already a pending adjournment request for this case")


class DuplicateScheduleRequestError(ConflictError):
    def __init__(self):
        super().__init__("Court scheduling has already been requested for this case")


class IdempotencyKeyReusedError(ConflictError):
    def __init__(self):
        super().__init__("Idempotency-Key was already used for a different request")


# ----------------------------------------------------------------------------
# InvalidState / Validation / Access
# ----------------------------------------------------------------------------

class InvalidStateError(SchedulingError):
    """Operation attempted against a record not in the required state"""
    status_code = 400


class SchedulingValidationError(SchedulingError):
    """Missing or malformed date/time input"""
    status_code = 422


class ForbiddenError(SchedulingError):
    """Raised when user doesn't own resource"""
    status_code = 403

    def __init__(self, detail: str = "You don't have permission to access this resource"):
        super().__init__(detail)


# ----------------------------------------------------------------------------
# Persistence
# ----------------------------------------------------------------------------

class PersistenceFailureError(SchedulingError):
    """Storage failed mid-transaction; everything was rolled back"""
    status_code = 503

    def __init__(self):
        super().__init__("The schedule could not be saved. Please try again.")
