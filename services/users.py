"""Service for registering users and letting them manage their account."""

import logfire

from fastapi import Depends
from fastapi.concurrency import run_in_threadpool

from typing import Annotated

from models.helpers import UserRole
from schema.security import Principal
from schema.users import CreateUserRequest, UpdatePasswordRequest, UpdateUserDetailsRequest
from security.exceptions import InvalidCurrentPassword, UserAlreadyExists, UserNotFound
from security.helpers import get_password_hash, verify_password
from services.events import EventPublisher, UserCreatedEvent, get_event_publisher
from services.user_store import UserRecord, UserStore, get_user_store


class UserService:
    """Creates users and announces them to the other modules."""

    def __init__(self, user_store: UserStore, publisher: EventPublisher):
        self.user_store = user_store
        self.publisher = publisher

    async def register(self, payload: CreateUserRequest) -> tuple[UserRecord, UserCreatedEvent]:
        """Stores a new user with the default role.

        Args:
            payload (CreateUserRequest): Validated registration data.

        Raises:
            UserAlreadyExists: Raised when the username or email is taken.

        Returns:
            tuple[UserRecord, UserCreatedEvent]: The stored user and the event to publish.
        """
        if await self.user_store.exists(payload.username, payload.email):
            raise UserAlreadyExists(f"Username or email already exists: {payload.username}")

        record = UserRecord(
            username=payload.username,
            email=payload.email,
            password_hash=await run_in_threadpool(get_password_hash, payload.password),
            roles=[UserRole.USER.value],
            first_name=payload.first_name,
            last_name=payload.last_name,
        )

        saved = await self.user_store.add(record)
        logfire.info(f"Saved new user to database: {saved.username}")

        return saved, UserCreatedEvent(username=saved.username, email=saved.email)

    async def update_password(self, principal: Principal, payload: UpdatePasswordRequest) -> UserRecord:
        """Replaces the password of the authenticated user.

        Issued tokens are not affected and stay valid until they expire.

        Args:
            principal (Principal): The authenticated caller.
            payload (UpdatePasswordRequest): Current password, new password and its confirmation.

        Raises:
            UserNotFound: Raised when the caller has no stored account.
            InvalidCurrentPassword: Raised when the current password is wrong.

        Returns:
            UserRecord: The updated user.
        """
        user = await self._get_account(principal)

        if not await run_in_threadpool(verify_password, payload.current_password, user.password_hash):
            logfire.warning(f"Password update rejected for user {user.username}: wrong current password")
            raise InvalidCurrentPassword("Current password is incorrect")

        new_hash = await run_in_threadpool(get_password_hash, payload.new_password)
        saved = await self._save(user.model_copy(update={"password_hash": new_hash}))

        logfire.info(f"Password updated for user {saved.username}")
        return saved

    async def update_details(self, principal: Principal, payload: UpdateUserDetailsRequest) -> UserRecord:
        """Replaces the first and last name of the authenticated user."""
        user = await self._get_account(principal)

        saved = await self._save(
            user.model_copy(update={"first_name": payload.first_name, "last_name": payload.last_name})
        )

        logfire.info(f"Details updated for user {saved.username}")
        return saved

    async def _get_account(self, principal: Principal) -> UserRecord:
        user = await self.user_store.find_by_login(principal.subject)

        if user is None or user.username != principal.subject:
            raise UserNotFound(f"No account for user {principal.subject}")

        return user

    async def _save(self, record: UserRecord) -> UserRecord:
        saved = await self.user_store.update(record)

        if saved is None:
            raise UserNotFound(f"No account for user {record.username}")

        return saved


def get_user_service(
    user_store: Annotated[UserStore, Depends(get_user_store)],
) -> UserService:
    """Factory function to create a UserService instance."""
    return UserService(user_store=user_store, publisher=get_event_publisher())
