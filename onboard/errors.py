"""Domain errors raised by the services.

Each error carries the HTTP status it is rendered with; the handler in
``onboard.main`` turns them into JSON responses.
"""

from typing import List, Optional


class OnboardError(Exception):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class NotFoundError(OnboardError):
    status_code = 404


class ForbiddenError(OnboardError):
    status_code = 403


class ConflictError(OnboardError):
    """Duplicate application, passed deadline, full session."""

    status_code = 400


class CapacityExceededError(ConflictError):
    pass


class ValidationError(OnboardError):
    status_code = 400

    def __init__(self, errors: List[str], message: str = "Validation failed"):
        super().__init__(message, errors)
