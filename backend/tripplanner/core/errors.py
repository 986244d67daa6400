"""
Domain exceptions.
Raised by the service and repository layers and translated to HTTP
responses by the handlers registered in main.py.
"""


class TripPlannerError(Exception):
    """Base class for all trip planner errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TripPlannerError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(TripPlannerError):
    """Referenced trip, place, expense or checklist item does not exist."""

    status_code = 404


class UnsupportedCurrencyError(ValidationError):
    """Currency other than KRW or THB."""


class ReorderFailed(TripPlannerError):
    """Batch write of a reorder failed; nothing was applied."""
