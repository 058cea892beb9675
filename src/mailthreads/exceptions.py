# ABOUTME: Custom exception hierarchy for mailthreads error handling
# ABOUTME: Provides specialized exceptions with recovery hints for store and model errors
"""Custom exceptions for mailthreads"""


class MailthreadsError(Exception):
    """Base exception for all mailthreads errors"""

    def __init__(self, message: str, recovery_hint: str | None = None):
        super().__init__(message)
        self.recovery_hint = recovery_hint

    def __str__(self):
        base = super().__str__()
        if self.recovery_hint:
            return f"{base}\nHint: {self.recovery_hint}"
        return base


class ConfigError(MailthreadsError):
    """Configuration related errors"""

    pass


class DataError(MailthreadsError):
    """Data storage/retrieval errors"""

    pass


class NotFound(DataError):
    """A requested email does not exist in the store"""

    pass


class Conflict(DataError):
    """An email with the same id is already stored"""

    pass


class ValidationError(MailthreadsError):
    """Validation errors"""

    pass
