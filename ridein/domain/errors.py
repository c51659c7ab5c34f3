"""
Error taxonomy shared by services and the HTTP layer.

Every error carries a stable machine-readable ``error_type`` and the HTTP
status it maps to.  The API renders them as ``{error_type, error}``.
"""

from __future__ import annotations


class RideInError(Exception):
    status_code = 500
    error_type = "servererror"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error_type": self.error_type, "error": self.message}


class InputError(RideInError):
    status_code = 400
    error_type = "inputerror"


class InvalidTransition(InputError):
    """Raised when a trip status change violates the state machine."""

    def __init__(self, from_status: str, to_status: str):
        super().__init__(
            f"Cannot transition trip from {from_status} to {to_status}"
        )
        self.from_status = from_status
        self.to_status = to_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["from_status"] = self.from_status
        data["to_status"] = self.to_status
        return data


class InvalidState(InputError):
    pass


class InvalidBid(InputError):
    pass


class Unauthorized(RideInError):
    status_code = 401
    error_type = "unauthorized"


class AccessDenied(RideInError):
    status_code = 403
    error_type = "accessdenied"


class NotFound(RideInError):
    status_code = 404
    error_type = "notfound"


class Conflict(RideInError):
    status_code = 409
    error_type = "conflict"


class DuplicateBid(Conflict):
    pass
