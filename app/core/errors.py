# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Typed error taxonomy shared by every layer.

Each error carries the HTTP status the controllers answer with and a
``retryable`` flag; only store failures may be retried with the same input.
"""


class MembershipError(Exception):
    """Base class for every expected failure of the membership core."""

    status_code: int = 400
    code: str = "membership_error"
    retryable: bool = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFoundError(MembershipError):
    status_code = 404
    code = "not_found"


class ConflictError(MembershipError):
    status_code = 409
    code = "conflict"


class AlreadyUsedError(MembershipError):
    status_code = 410
    code = "already_used"


class ExpiredError(MembershipError):
    status_code = 410
    code = "expired"


class UnauthorizedError(MembershipError):
    status_code = 401
    code = "unauthorized"


class IllegalTransitionError(MembershipError):
    status_code = 409
    code = "illegal_transition"


class ValidationError(MembershipError):
    status_code = 422
    code = "validation_error"


class StoreUnavailableError(MembershipError):
    status_code = 503
    code = "store_unavailable"
    retryable = True


class WebhookNotConfiguredError(MembershipError):
    status_code = 500
    code = "webhook_not_configured"
