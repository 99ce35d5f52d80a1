"""
Identity module exceptions.

Raised inside the identity service and converted to AuthResult failures
at its boundary.
"""

from shared.exceptions import AuthenticationError, ExternalServiceError


class IdentityProviderError(ExternalServiceError):
    """Raised when Supabase Auth rejects a request or cannot be reached."""

    def __init__(self, message: str, operation: str):
        super().__init__(
            message,
            service="supabase-auth",
            code="AUTH_PROVIDER_ERROR",
            details={"operation": operation},
        )


class OAuthFlowError(AuthenticationError):
    """Raised when the OAuth popup flow is not configured, cancelled or incomplete."""

    def __init__(self, message: str, provider: str = "google"):
        super().__init__(
            message,
            code="OAUTH_FLOW_ERROR",
            details={"provider": provider},
        )


class NoCurrentUserError(AuthenticationError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, message: str = "No user logged in"):
        super().__init__(message, code="NO_CURRENT_USER")
