"""Contains the schema definition for requests and responses related to users
"""

import re

from pydantic import AliasChoices, BaseModel, Field, EmailStr, field_validator, model_validator

from typing import Annotated, List, Optional, Self


def check_password_strength(password: str) -> str:
    """Ensures the password has at least one uppercase letter, one lowercase
    letter, one number and one special character.

    Raises:
        ValueError: Raised with the first rule the password breaks.
    """
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one number")
    if not re.search(r"[@$!%*?&#]", password):
        raise ValueError("Password must contain at least one special character")
    return password


class CreateUserRequest(BaseModel):
    """Describes the structure of the create user request."""

    username: Annotated[str, Field(max_length=50, min_length=3, pattern=r"^[A-Za-z0-9_.-]+$")]
    email: Annotated[EmailStr, Field(max_length=100)]
    password: Annotated[str, Field(min_length=8, max_length=72)]  # bcrypt only uses the first 72 bytes
    password_confirmation: Annotated[
        str,
        Field(min_length=8, max_length=72, validation_alias=AliasChoices("passwordConfirmation", "password_confirmation")),
    ]
    first_name: Annotated[
        Optional[str], Field(default=None, max_length=50, validation_alias=AliasChoices("firstName", "first_name"))
    ]
    last_name: Annotated[
        Optional[str], Field(default=None, max_length=50, validation_alias=AliasChoices("lastName", "last_name"))
    ]

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password_strength(v)

    # * Checks if password and password confirmation fields match
    @model_validator(mode="after")
    def check_password_match(self) -> Self:
        if self.password != self.password_confirmation:
            raise ValueError("Password and confirmation do not match")
        return self


class UpdatePasswordRequest(BaseModel):
    """Describes the structure of the update password request."""

    current_password: Annotated[
        str, Field(min_length=1, max_length=128, validation_alias=AliasChoices("currentPassword", "current_password"))
    ]
    new_password: Annotated[
        str, Field(min_length=8, max_length=72, validation_alias=AliasChoices("newPassword", "new_password"))
    ]
    confirm_password: Annotated[
        str, Field(min_length=8, max_length=72, validation_alias=AliasChoices("confirmPassword", "confirm_password"))
    ]

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v):
        return check_password_strength(v)

    @model_validator(mode="after")
    def check_password_match(self) -> Self:
        if self.new_password != self.confirm_password:
            raise ValueError("Password and confirmation do not match")
        return self


class UpdateUserDetailsRequest(BaseModel):
    """Describes the structure of the update details request. Omitted names are cleared."""

    first_name: Annotated[
        Optional[str],
        Field(default=None, min_length=1, max_length=50, validation_alias=AliasChoices("firstName", "first_name")),
    ]
    last_name: Annotated[
        Optional[str],
        Field(default=None, min_length=1, max_length=50, validation_alias=AliasChoices("lastName", "last_name")),
    ]


class CreateUserResponse(BaseModel):
    """Describes the structure of the create user response."""

    message: Annotated[str, Field(default="User created successfully")]
    user_id: Annotated[Optional[str], Field(default=None, serialization_alias="userId", description="ID of the created user")]
    username: str
    email: EmailStr


class CurrentUserResponse(BaseModel):
    """Describes the authenticated caller."""

    username: str
    roles: Annotated[List[str], Field(default=[])]


class UserDetailsResponse(BaseModel):
    """Describes a stored account after it has been changed by its owner."""

    message: str
    user_id: Annotated[Optional[str], Field(default=None, serialization_alias="userId")]
    username: str
    email: str
    first_name: Annotated[Optional[str], Field(default=None, serialization_alias="firstName")]
    last_name: Annotated[Optional[str], Field(default=None, serialization_alias="lastName")]
    roles: Annotated[List[str], Field(default=[])]
