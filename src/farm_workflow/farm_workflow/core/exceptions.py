class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class AuthExpired(DomainError):
    """Raised when the access token is missing, invalid or expired (HTTP 401)."""


class NotFoundError(DomainError):
    """Raised when a task or submission does not exist for the caller."""


class ConflictError(DomainError):
    """Raised when server state changed under the caller (HTTP 409).

    The client attaches the re-fetched submissions view as ``refreshed`` so the
    caller can re-render without assuming its old derived state.
    """

    def __init__(self, message: str = "State changed, please refresh", *, refreshed=None):
        super().__init__(message)
        self.refreshed = refreshed


class NetworkError(DomainError):
    """Raised on transport failures, timeouts and unexpected server errors."""
