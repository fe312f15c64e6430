""" User router for handling all user-related endpoints.
"""

import logfire

from fastapi import APIRouter, status, Depends, BackgroundTasks
from fastapi.responses import JSONResponse
from schema.users import (
    CreateUserRequest,
    CreateUserResponse,
    CurrentUserResponse,
    UpdatePasswordRequest,
    UpdateUserDetailsRequest,
    UserDetailsResponse,
)

from pymongo.errors import DuplicateKeyError, WriteError, ConnectionFailure, ServerSelectionTimeoutError

from schema.security import Principal
from security.context import get_current_principal
from security.exceptions import InvalidCurrentPassword, UserAlreadyExists, UserNotFound
from services.user_store import UserRecord
from services.users import UserService, get_user_service

from typing import Annotated

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)


@router.post("", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: CreateUserRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
    background_tasks: BackgroundTasks,
):
    """This endpoint creates a new user with the default `ROLE_USER` role.
    Other modules are notified through a `UserCreated` event once the response is sent.

    ## Possible Errors
    - 400 Bad Request: If a field fails validation.
    - 409 Conflict: If a user with the provided username or email already exists.
    - 500 Internal Server Error: If there is an unexpected error during user creation.
    - 503 Service Unavailable: If there is a database connection issue.

    ## Error response structure
    ```json
    {
        "detail": "Sample error message"
    }
    ```
    """

    try:
        with logfire.span(f"Creating new user: {payload.username}"):
            user, event = await user_service.register(payload)

            background_tasks.add_task(user_service.publisher.publish, event)  # Notify other modules in background

            return CreateUserResponse(
                user_id=user.id,
                username=user.username,
                email=user.email,
            )
    except (UserAlreadyExists, DuplicateKeyError):
        logfire.warning(f"Attempt to create duplicate user: {payload.username}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "A user with this username or email already exists"},
        )
    except WriteError:
        logfire.error(f"Write error when creating user: {payload.username}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Failed to create user account"},
        )
    except (ServerSelectionTimeoutError, ConnectionFailure):
        logfire.error(f"Database unavailable when creating user: {payload.username}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Service temporarily unavailable"},
        )


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    principal: Annotated[Principal, Depends(get_current_principal)],
):
    """Get the username and roles of the authenticated caller.

    ## Possible Errors
    - 401 Unauthorized: If the request carries no valid access token.
    """
    return CurrentUserResponse(username=principal.subject, roles=sorted(principal.roles))


account_router = APIRouter(
    prefix="/auth/account",
    tags=["Account"],
)


def _details_response(user: UserRecord, message: str) -> UserDetailsResponse:
    return UserDetailsResponse(
        message=message,
        user_id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        roles=sorted(user.roles),
    )


@account_router.post("/update-password", response_model=UserDetailsResponse, response_model_exclude_none=True)
async def update_password(
    payload: UpdatePasswordRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Changes the password of the authenticated user.

    ## Possible Errors
    - 400 Bad Request: If the current password is wrong, the new password is too weak or the confirmation does not match.
    - 401 Unauthorized: If the request carries no valid access token.
    - 404 Not Found: If the account no longer exists.
    - 503 Service Unavailable: If there is a database connection issue.
    """

    try:
        user = await user_service.update_password(principal, payload)
        return _details_response(user, "Password updated successfully")
    except InvalidCurrentPassword:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Current password is incorrect"},
        )
    except UserNotFound:
        logfire.warning(f"Password update for missing account: {principal.subject}")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "User not found"},
        )
    except (ServerSelectionTimeoutError, ConnectionFailure):
        logfire.error(f"Database unavailable when updating password: {principal.subject}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Service temporarily unavailable"},
        )


@account_router.put("/update-details", response_model=UserDetailsResponse, response_model_exclude_none=True)
async def update_details(
    payload: UpdateUserDetailsRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Changes the first and last name of the authenticated user.

    ## Possible Errors
    - 400 Bad Request: If a name is empty or longer than 50 characters.
    - 401 Unauthorized: If the request carries no valid access token.
    - 404 Not Found: If the account no longer exists.
    """

    try:
        user = await user_service.update_details(principal, payload)
        return _details_response(user, "User details updated successfully")
    except UserNotFound:
        logfire.warning(f"Details update for missing account: {principal.subject}")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "User not found"},
        )
    except (ServerSelectionTimeoutError, ConnectionFailure):
        logfire.error(f"Database unavailable when updating details: {principal.subject}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Service temporarily unavailable"},
        )
