# src/exceptions.py
from typing import Optional


class ServiceError(Exception):
    """Base class for typed domain errors returned to the transport layer."""
    code: str = "ServiceError"
    status_code: int = 400
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.detail}


class NotFound(ServiceError):
    code = "NotFound"
    status_code = 404
    default_detail = "Entity not found"


class PermissionDenied(ServiceError):
    code = "PermissionDenied"
    status_code = 403
    default_detail = "Not allowed to perform this action"


class ConstraintViolation(ServiceError):
    """A foreign key or uniqueness invariant would be broken.

    With ``fatal=True`` the violation was supposed to be structurally
    impossible; it is logged with full context and surfaced as an
    internal error.
    """
    code = "ConstraintViolation"
    status_code = 409
    default_detail = "Constraint violation"

    def __init__(self, detail: Optional[str] = None, fatal: bool = False):
        super().__init__(detail)
        self.fatal = fatal
        if fatal:
            self.status_code = 500


class CourseNotPublished(ServiceError):
    code = "CourseNotPublished"
    status_code = 409
    default_detail = "Course is not published"


class PaymentRequired(ServiceError):
    code = "PaymentRequired"
    status_code = 402
    default_detail = "A successful payment is required for this course"


class SubscriptionNotActive(ServiceError):
    code = "SubscriptionNotActive"
    status_code = 409
    default_detail = "Subscription is not active"


class InvalidProgress(ServiceError):
    code = "InvalidProgress"
    status_code = 422
    default_detail = "Progress must be an integer between 0 and 100"


class ProgressRegression(ServiceError):
    code = "ProgressRegression"
    status_code = 409
    default_detail = "Progress cannot decrease"


class InvalidTransition(ServiceError):
    code = "InvalidTransition"
    status_code = 409
    default_detail = "Illegal status transition"


class InvalidInput(ServiceError):
    code = "InvalidInput"
    status_code = 422
    default_detail = "Invalid input"
