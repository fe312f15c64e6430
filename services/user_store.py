"""Identity store backed by the beanie `User` document."""

from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from models.users import User


class UserRecord(BaseModel):
    """Plain view of a persisted identity, detached from the database document."""

    id: Annotated[Optional[str], Field(default=None)]
    username: str
    email: str
    password_hash: str
    roles: Annotated[List[str], Field(default=[])]
    enabled: Annotated[bool, Field(default=True)]
    first_name: Annotated[Optional[str], Field(default=None)]
    last_name: Annotated[Optional[str], Field(default=None)]


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=str(user.id) if user.id else None,
        username=user.username,
        email=user.email,
        password_hash=user.password,
        roles=[role.value for role in user.roles],
        enabled=user.enabled,
        first_name=user.first_name,
        last_name=user.last_name,
    )


class UserStore:
    """Looks up and stores identities in MongoDB."""

    async def find_by_login(self, login: str) -> UserRecord | None:
        """Fetches a user by username, falling back to email.

        Args:
            login (str): Username or email address.

        Returns:
            UserRecord | None: The user if found, None otherwise.
        """
        user = await User.find_one(User.username == login)

        if user is None:
            user = await User.find_one(User.email == login)

        return _to_record(user) if user else None

    async def exists(self, username: str, email: str) -> bool:
        """Checks whether the username or the email is already taken."""
        by_username = await User.find_one(User.username == username)
        if by_username is not None:
            return True
        return await User.find_one(User.email == email) is not None

    async def add(self, record: UserRecord) -> UserRecord:
        """Inserts a new user and returns it with its generated ID."""
        user = User(
            username=record.username,
            email=record.email,
            password=record.password_hash,
            roles=record.roles,
            enabled=record.enabled,
            first_name=record.first_name,
            last_name=record.last_name,
        )
        await user.insert()
        return _to_record(user)

    async def update(self, record: UserRecord) -> UserRecord | None:
        """Saves the password hash and names of an existing user.

        Returns:
            UserRecord | None: The saved user, None when no user has that username.
        """
        user = await User.find_one(User.username == record.username)

        if user is None:
            return None

        user.password = record.password_hash
        user.first_name = record.first_name
        user.last_name = record.last_name
        await user.save()

        return _to_record(user)


def get_user_store() -> UserStore:
    """Factory function for the user store dependency."""
    return UserStore()
