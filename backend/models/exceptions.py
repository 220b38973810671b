"""
Domain exceptions raised by services and the authentication layer.

Each exception carries a stable machine-readable ``code`` and an HTTP status.
The centralized handlers in main.py turn them into JSON error bodies, so
services stay free of FastAPI imports and can be reused from background jobs.
"""

from datetime import datetime

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Request correlation ID (generated when outside a request).
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class ValidationException(DomainException):
    """Malformed, missing or out-of-range input."""

    code = "VALIDATION_ERROR"
    status_code = 400


class AuthenticationException(DomainException):
    """Missing or invalid identity."""

    code = "UNAUTHORIZED"
    status_code = 401


class PermissionDeniedException(DomainException):
    """Authenticated but not entitled to the operation."""

    code = "FORBIDDEN"
    status_code = 403


class NotFoundException(DomainException):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class AlreadyExistsException(DomainException):
    """Raised when trying to create a resource that already exists."""

    code = "CONFLICT"
    status_code = 409


class ConfigurationException(DomainException):
    """Required configuration is absent."""

    code = "CONFIG_ERROR"
    status_code = 500


class ServiceUnavailableException(DomainException):
    """An external verification service could not be reached."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503


class CountyConflictException(DomainException):
    """
    Requested counties are already managed by other admins.

    Attributes:
        conflicts: (county, admin_email) pairs, sorted by county.
    """

    code = "COUNTY_CONFLICT"
    status_code = 400

    def __init__(self, conflicts: list[tuple[str, str]]):
        self.conflicts = sorted(conflicts)
        listed = ", ".join(f"{county} ({email})" for county, email in self.conflicts)
        super().__init__(
            "The following counties are already assigned to other admins: " + listed
        )


class InvalidCredentialsException(AuthenticationException):
    """Invalid email or password."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class UserAlreadyExistsException(AlreadyExistsException):
    """Registration with an email that is already taken."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


class InvalidCountyException(ValidationException):
    """County outside the fixed county list."""

    def __init__(self, county: str):
        super().__init__(f"Invalid county: {county}")
        self.county = county


class UserBannedException(PermissionDeniedException):
    """Raised when a banned user tries to perform a restricted action."""

    def __init__(self, banned_until: datetime | None = None):
        if banned_until:
            message = (
                f"Your account is temporarily banned until {banned_until.isoformat()}"
            )
        else:
            message = "Your account has been permanently banned"
        super().__init__(message)
        self.banned_until = banned_until
