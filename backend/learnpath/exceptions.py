"""
Application error taxonomy.

Every error carries the HTTP status it maps to. Handlers registered in
``learnpath.main`` turn them into ``{"success": false, "message": ...}``.
"""

from fastapi import status


class LearnPathError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LearnPathError):
    """Missing or malformed request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthError(LearnPathError):
    """No session, an expired session, or bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class NotFoundError(LearnPathError):
    """A topic or survey response does not exist for the current user."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(LearnPathError):
    """A compare-and-swap write kept losing to concurrent writers."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting update"


class UpstreamError(LearnPathError):
    """The document store or the language model failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Upstream service failed"


class GenerationError(UpstreamError):
    """The language model call failed or returned content of the wrong shape."""

    default_message = "Failed to generate content"
