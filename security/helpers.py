"""Contains password hashing and credential verification helpers
"""
import logfire

from fastapi import Depends
from fastapi.concurrency import run_in_threadpool

from passlib.context import CryptContext

from typing import Annotated, Optional

from schema.security import Principal
from security.context import AuthContext
from security.exceptions import AuthenticationUnavailable, InvalidCredentials
from services.user_store import UserStore, get_user_store


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies that `plain_password` and `hashed_password` are equal.

    Args:
        plain_password (str): The plain text password to verify.
        hashed_password (str): The hashed password to compare against.

    Returns:
        bool: True if the passwords match, False otherwise.
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generates a hash for the given password.

    Args:
        password (str): The plain text password to hash.

    Returns:
        str: The hashed password.
    """
    return pwd_context.hash(password)


class CredentialVerifier:
    """Checks a username/password pair against the user store."""

    def __init__(self, user_store: UserStore):
        self.user_store = user_store

    async def authenticate(
        self, username: str, password: str, context: Optional[AuthContext] = None
    ) -> Principal:
        """Authenticates a user by their username (or email) and password.

        Args:
            username (str): Username or email of the user.
            password (str): The password of the user.
            context (Optional[AuthContext], optional): Context of the current request. Receives the principal on success.

        Raises:
            InvalidCredentials: Raised when the account is unknown, disabled or the password is wrong.
            AuthenticationUnavailable: Raised when the check itself fails.

        Returns:
            Principal: The authenticated principal.
        """
        try:
            user = await self.user_store.find_by_login(username)

            if user is None or not user.enabled:
                raise InvalidCredentials()
            if not await run_in_threadpool(verify_password, password, user.password_hash):
                raise InvalidCredentials()
        except InvalidCredentials:
            logfire.warning(f"Authentication failed for user: {username}")
            raise
        except Exception as e:
            logfire.error(f"Unexpected error during authentication for user {username}: {str(e)}")
            raise AuthenticationUnavailable() from e

        principal = Principal(subject=user.username, roles=frozenset(user.roles))

        if context is not None:
            context.authenticate(principal)

        logfire.info(f"Authentication successful for user: {user.username}")
        return principal


def get_credential_verifier(
    user_store: Annotated[UserStore, Depends(get_user_store)],
) -> CredentialVerifier:
    """Factory function to create a CredentialVerifier instance."""
    return CredentialVerifier(user_store)
