"""Errors raised by the authentication core."""


class ConfigurationError(RuntimeError):
    """Raised at startup when the security configuration is unusable."""


class AuthenticationError(Exception):
    """Base class for every failure surfaced to clients as 401 Unauthorized."""

    message = "Authentication failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidCredentials(AuthenticationError):
    """Unknown account, wrong password or disabled account."""

    message = "Invalid username or password"


class AuthenticationUnavailable(AuthenticationError):
    """The credential check failed for a reason unrelated to the credentials."""

    message = "Authentication failed"


class MissingRefreshToken(AuthenticationError):
    message = "Refresh token is required"


class InvalidRefreshToken(AuthenticationError):
    message = "Invalid refresh token"


class WrongTokenType(AuthenticationError):
    message = "Invalid token type"


class NotAuthenticated(AuthenticationError):
    message = "Not authenticated"


class TokenError(Exception):
    """Base class for token decoding failures. Never sent to clients as is."""


class MalformedToken(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class UserAlreadyExists(Exception):
    """Raised when registering a username or email that is already taken."""


class UserNotFound(Exception):
    """Raised when the authenticated subject no longer has a stored account."""


class InvalidCurrentPassword(Exception):
    """Raised when an account change is confirmed with the wrong current password."""
