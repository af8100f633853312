"""Domain exception hierarchy for the app-engine service.

Services raise these instead of bare ``ValueError`` so that the global
exception handlers in ``app_engine/middleware/exception_handler.py`` can
turn them into the response envelope without fragile string matching.

Domain failures are reported with HTTP 200 and ``error: true``; only the
envelope content signals failure.
"""

_MISSING = object()


class AppEngineError(Exception):
    """Base for all domain exceptions."""

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
        self.message = message


class ValidationError(AppEngineError):
    """A payload or identifier failed a field rule."""

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message)


class NotFoundError(AppEngineError):
    """Project, user details, plugin or other record not found."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class UnauthenticatedError(AppEngineError):
    """The call requires a logged-in user."""

    def __init__(self, message: str = "You must be logged in to make this request"):
        super().__init__(message)


class ForbiddenError(AppEngineError):
    """The caller is known but lacks the required privilege."""

    def __init__(self, message: str = "You do not have permission"):
        super().__init__(message)


class QuotaExceededError(AppEngineError):
    """The user already owns as many projects as their plan allows."""

    def __init__(
        self,
        message: str = (
            "You cannot create more projects on this plan. "
            "Please consider upgrading your account"
        ),
    ):
        super().__init__(message)


class LinkFailureError(AppEngineError):
    """A build could not be attached to its project."""

    def __init__(
        self,
        message: str = "An error has occurred while linking the build with a project",
    ):
        super().__init__(message)


class PersistenceError(AppEngineError):
    """The data store rejected or failed an operation."""


def envelope(
    message: str,
    *,
    error: bool = False,
    data: object = _MISSING,
    count: int | None = None,
    **extra: object,
) -> dict:
    """Build the uniform response body.

    Returns
    -------
    dict
        ``{"error": ..., "message": ...}`` plus ``data`` / ``count`` when
        supplied and any extra top-level keys (e.g. ``itemsRemoved``).
    """
    body: dict = {"error": error, "message": message}
    if data is not _MISSING:
        body["data"] = data
    if count is not None:
        body["count"] = count
    body.update(extra)
    return body


def error_envelope(exc: Exception) -> dict:
    """Envelope for a failed call, using the exception text as the message."""
    message = exc.message if isinstance(exc, AppEngineError) else str(exc)
    return envelope(message, error=True)
