"""Vuelve-Engine exception hierarchy.

Every error carries a short, user-safe message, a machine code and the HTTP
status the adapter layer should answer with.
"""


class VuelveError(Exception):
    """Base exception for all Vuelve errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "VUELVE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(VuelveError):
    """Raised when input is malformed or missing, before any external call."""

    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="VALIDATION_ERROR")


class AuthenticationError(VuelveError):
    """Raised when no valid identity could be established."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, code="NOT_AUTHENTICATED")


class AuthorizationError(VuelveError):
    """Raised when the identity is valid but not entitled to the operation."""

    status_code = 403

    def __init__(self, message: str = "Not authorized", code: str = "FORBIDDEN"):
        super().__init__(message, code=code)


class EntitlementError(AuthorizationError):
    """Raised when the tenant's billing plan does not include a capability."""

    def __init__(self, message: str = "Not available on the current plan"):
        super().__init__(message, code="ENTITLEMENT_DENIED")


class NotFoundError(VuelveError):
    """Raised when a referenced tenant, customer or program is absent."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class ConflictError(VuelveError):
    """Raised when a record is in a state that forbids the operation."""

    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message, code="CONFLICT")


class RateLimitedError(VuelveError):
    """Raised when a rate limit or lockout threshold was exceeded."""

    status_code = 429

    def __init__(self, message: str = "Too many requests", retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(message, code="RATE_LIMITED")


class ExternalDependencyError(VuelveError):
    """Raised when the store or a provider failed or returned malformed data.

    The message is always generic; provider detail belongs in the logs.
    """

    status_code = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__(message, code="EXTERNAL_DEPENDENCY")


class ConfigurationError(VuelveError):
    """Raised when a required server-side setting is missing."""

    status_code = 503

    def __init__(self, message: str = "Service not configured"):
        super().__init__(message, code="NOT_CONFIGURED")
