class RequestError(Exception):
    """Rejected synchronously, before any background work is scheduled."""


class NotFoundError(RequestError):
    """Raised when a project or processing run does not exist."""


class ConflictError(RequestError):
    """Raised when a project already has an active processing run."""


class BadRequestError(RequestError):
    """Raised when a request cannot be served in the current state."""
