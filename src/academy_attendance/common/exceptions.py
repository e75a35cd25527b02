"""
This file contains custom, application-specific exceptions.
Each one carries the HTTP status it is rendered with by the handlers
registered in main.create_app.
"""

class AttendanceAppError(Exception):
    """Base class for all errors the API reports to its callers."""
    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidInputError(AttendanceAppError):
    """Raised when a request is well-formed JSON but semantically invalid."""
    status_code = 400
    default_detail = "Invalid request."


class AdminAuthError(AttendanceAppError):
    """Raised when the admin secret is missing, wrong, or not configured."""
    status_code = 401
    default_detail = "Invalid admin password"


class RecordNotFoundError(AttendanceAppError):
    """Raised when a delete/unhide target does not exist."""
    status_code = 404
    default_detail = "Record not found."


class UpstreamUnavailableError(AttendanceAppError):
    """Raised when the online scheduler cannot be reached or answers with an error."""
    status_code = 503
    default_detail = "Online scheduler is currently unavailable. Please try again."
