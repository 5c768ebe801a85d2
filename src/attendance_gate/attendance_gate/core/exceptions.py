class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InputError(ValidationError):
    """Raised for bad coordinates or a missing site, before any external call."""


class GateFailure(DomainError):
    """An admission gate (geofence, photo, biometrics) said no."""


class BusyError(DomainError):
    """A clock attempt is already in flight for the actor."""


class InfrastructureError(DomainError):
    """A collaborator was unavailable or timed out; the caller may retry."""


class PositionPermissionDenied(InfrastructureError):
    pass


class PositionUnavailable(InfrastructureError):
    pass


class PositionTimeout(InfrastructureError):
    pass


class CaptureUnavailable(InfrastructureError):
    pass


class VerificationNetworkError(InfrastructureError):
    pass


class VerificationServiceError(InfrastructureError):
    pass


class VerificationTimeout(InfrastructureError):
    pass


class StoreConflict(InfrastructureError):
    """The actor's log moved between type inference and append."""


class StoreUnavailable(InfrastructureError):
    pass
