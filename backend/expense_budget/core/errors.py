"""
Domain errors raised by the service layer.

Each carries the HTTP status the API answers with; the handlers in
``expense_budget.main`` render them as ``{"message": ...}``.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed or out-of-range input. Never reaches storage."""
    status_code = 400


class NotFound(AppError):
    """Target or referenced row is absent or soft-deleted."""
    status_code = 404


class Conflict(AppError):
    """Active code collision, or a write blocked by finalization."""
    status_code = 409
