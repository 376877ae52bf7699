"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
VALIDATION_ERROR = "VALIDATION_ERROR"
UNAUTHORIZED = "UNAUTHORIZED"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    pass


class DomainValidationError(DomainError):
    """
    Raised when business rules or field validation fail.

    errors maps a field name to its messages, e.g. {"email": ["is invalid"]}.
    """

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class UnauthorizedError(DomainError):
    """Raised when credentials do not check out. The message never says which part was wrong."""

    pass


class RedirectError(DomainError):
    """
    Raised when an action must not run and the client is sent elsewhere.

    location is the redirect target; flash_kind/flash_message, when set, are
    stored in the session for the next page.
    """

    def __init__(
        self,
        location: str,
        flash_kind: str | None = None,
        flash_message: str | None = None,
    ):
        super().__init__(flash_message or f"Redirect to {location}")
        self.location = location
        self.flash_kind = flash_kind
        self.flash_message = flash_message


class LoginRequiredError(RedirectError):
    """Raised when an action needs a logged-in user and there is none."""

    pass


class ForbiddenError(RedirectError):
    """Raised when the current user may not perform the action (wrong user, not admin)."""

    pass
