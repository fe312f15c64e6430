"""Request-scoped authentication context."""

from typing import Annotated, Optional

from fastapi import Depends, Request

from schema.security import Principal
from security.exceptions import NotAuthenticated

REQUEST_STATE_KEY = "auth_context"


class AuthContext:
    """Who is calling, for the lifetime of a single request.

    One instance lives on `request.state` and is handed to the code that needs
    it; nothing is shared between requests.
    """

    def __init__(self, principal: Optional[Principal] = None):
        self.principal = principal

    def __repr__(self) -> str:
        return f"AuthContext(principal={self.principal!r})"

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    def authenticate(self, principal: Principal) -> None:
        self.principal = principal

    def clear(self) -> None:
        self.principal = None


def get_auth_context(request: Request) -> AuthContext:
    """Returns the context of `request`, creating an anonymous one if needed."""
    context = getattr(request.state, REQUEST_STATE_KEY, None)

    if context is None:
        context = AuthContext()
        setattr(request.state, REQUEST_STATE_KEY, context)

    return context


async def get_current_principal(
    context: Annotated[AuthContext, Depends(get_auth_context)],
) -> Principal:
    """Get the authenticated caller of the current request.

    Raises:
        NotAuthenticated: Raised when the request did not carry a valid token.

    Returns:
        Principal: The authenticated principal.
    """
    if not context.is_authenticated:
        raise NotAuthenticated()
    return context.principal
