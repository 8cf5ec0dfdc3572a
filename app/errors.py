"""Voice Journal error taxonomy.

Every failure in the upload pipeline and the journal API is raised as a
``JournalError`` subclass and rendered by the handler registered in
``main.py`` as ``{"detail": ..., "code": ...}`` with a fixed status code.
"""


class JournalError(Exception):
    """Base exception for all Voice Journal errors."""

    status_code = 500
    code = "JOURNAL_ERROR"
    default_detail = "An unexpected error occurred"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthorized(JournalError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_detail = "Unauthorized"


class BadRequest(JournalError):
    status_code = 400
    code = "BAD_REQUEST"
    default_detail = "Bad request"


class NotFound(JournalError):
    status_code = 404
    code = "NOT_FOUND"
    default_detail = "Not found"


class Conflict(JournalError):
    status_code = 409
    code = "CONFLICT"
    default_detail = "Conflict"


class UpstreamQuotaExceeded(JournalError):
    """Rate or quota limit reported by the speech or language service."""

    status_code = 429
    code = "UPSTREAM_QUOTA_EXCEEDED"
    default_detail = "API quota exceeded"


class UpstreamConfigError(JournalError):
    """Missing or rejected credentials for an upstream service."""

    status_code = 500
    code = "UPSTREAM_CONFIG_ERROR"
    default_detail = "OpenAI API configuration error"


class InternalError(JournalError):
    """Storage, database or otherwise unexpected upstream failure."""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_detail = "Internal server error during transcription"
