"""Domain errors surfaced to clients as toast notifications.

Each error carries a short ``title`` and a human readable message. The API
layer renders them as ``{"title": ..., "detail": ...}`` with the class
``status_code``.
"""


class CampaignError(Exception):
    """Base error for campaign operations."""

    status_code = 400
    title = "Request Failed"

    def __init__(self, message: str, title: str | None = None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "detail": self.message}


class ValidationError(CampaignError):
    """Form input is missing or malformed."""
    status_code = 400
    title = "Missing Information"


class AuthenticationError(CampaignError):
    """Credentials did not match."""
    status_code = 401
    title = "Invalid Credentials"


class NotFoundError(CampaignError):
    """Referenced record does not exist."""
    status_code = 404
    title = "Not Found"


class ConflictError(CampaignError):
    """Record already exists or was already consumed."""
    status_code = 409
    title = "Conflict"
