"""
Exceptions raised by formguard.

Only conditions that must stop the request are exceptions. A bad CSRF
submission is not one of them: TokenManager.validate_token reports it as
False.
"""


class FormGuardError(Exception):
    """Base class for formguard errors."""


class SessionUnavailable(FormGuardError):
    """No session exists for the current request.

    Raised when a token would have to be issued or read without a session to
    bind it to. Callers must not render the form in that case.
    """

    def __init__(self, message: str = "Session is not available"):
        super().__init__(message)
