"""
Session module exceptions.
"""

from shared.exceptions import AuthenticationError


class NoActiveSessionError(AuthenticationError):
    """Raised when a profile mutation is attempted while signed out."""

    def __init__(self, message: str = "No user logged in"):
        super().__init__(message, code="NO_ACTIVE_SESSION")
