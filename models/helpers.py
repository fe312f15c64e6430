"""Contains all models commonly used across different modules."""
from enum import Enum


class UserRole(str, Enum):
    """Enumeration of user roles."""
    USER = "ROLE_USER"
    ADMIN = "ROLE_ADMIN"


class ClientType(str, Enum):
    """Kind of client a token pair is issued to.

    Decides both the token lifetimes and how tokens travel back to the client.
    """
    WEB = "WEB"
    MOBILE = "MOBILE"


class TokenType(str, Enum):
    """Enumeration of token types carried in the `tokenType` claim."""
    ACCESS = "ACCESS"
    REFRESH = "REFRESH"
