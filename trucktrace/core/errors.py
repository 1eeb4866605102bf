"""
core/errors.py – Domain exceptions raised by the services.

Routes translate them to HTTPException via `status_code`.
"""


class TruckTraceError(Exception):
    status_code = 400


class ValidationFailed(TruckTraceError):
    status_code = 400


class AuthError(TruckTraceError):
    status_code = 401


class ForbiddenError(TruckTraceError):
    status_code = 403


class NotFoundError(TruckTraceError):
    status_code = 404


class ConflictError(TruckTraceError):
    """Duplicate email, duplicate favorite, second truck for an owner."""
    status_code = 400


class CurrentLocationConflict(TruckTraceError):
    """Another writer set a current location for the same truck first."""
    status_code = 409
