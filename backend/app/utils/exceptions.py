"""
Exception hierarchy for the sleep journal.

Services raise these; routers translate them into HTTP responses.
"""
from typing import Any, Dict, Optional


class SleepJournalError(Exception):
    """
    Base exception for all sleep journal errors.

    Carries a machine-readable ``code`` and, where the error concerns one
    input, the ``field`` it refers to, so routers can build a structured
    error detail without inspecting the message.
    """

    code: str = "ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        detail = {"code": self.code, "message": self.message}
        if self.field:
            detail["field"] = self.field
        return detail


class IncompleteEntryError(SleepJournalError, ValueError):
    """A stored entry is missing a numeric field the statistics need."""

    code = "INCOMPLETE_ENTRY"


class EntryNotFoundError(SleepJournalError):
    code = "ENTRY_NOT_FOUND"

    def __init__(self, message: str = "Sleep data not found"):
        super().__init__(message)


class EntryAccessDeniedError(SleepJournalError):
    code = "ENTRY_ACCESS_DENIED"


class EmailAlreadyRegisteredError(SleepJournalError):
    code = "EMAIL_EXISTS"

    def __init__(self, message: str = "An account with this email address already exists"):
        super().__init__(message, field="email")


class InvalidPasswordError(SleepJournalError):
    code = "INVALID_CURRENT_PASSWORD"

    def __init__(self, message: str = "Current password is incorrect"):
        super().__init__(message, field="current_password")


class PasswordReuseError(SleepJournalError):
    code = "SAME_PASSWORD"

    def __init__(self, message: str = "New password must be different from your current password"):
        super().__init__(message, field="new_password")


class InvalidCredentialsError(SleepJournalError):
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message)


class NotAuthenticatedError(SleepJournalError):
    code = "NOT_AUTHENTICATED"

    def __init__(self, message: str = "Not authorized, please log in"):
        super().__init__(message)
