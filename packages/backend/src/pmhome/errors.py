"""Error taxonomy shared by services, dependencies, and handlers.

Learn: Services raise these instead of HTTPException so they stay usable
outside a request (CLI, seed routine, tests). Each error carries the HTTP
status it maps to and a message that is safe to show a client.
register_exception_handlers() in main.py turns them into JSON responses.
"""


class AppError(Exception):
    """Base class for errors with a client-safe message."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AppError):
    """Identity not established or not verifiable."""

    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(AppError):
    """Identity established but not allowed (wrong role, inactive account)."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """A unique field is already taken."""

    status_code = 409
    default_message = "Conflict"


class ConfigurationError(AppError):
    """Server misconfiguration, e.g. the signing secret is unset.

    The detail goes to the log, never to the client.
    """

    status_code = 500
    default_message = "Internal server error"
