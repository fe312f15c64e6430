"""Defines schema of requests and responses related to security"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from typing import Annotated, FrozenSet, Optional

from models.helpers import ClientType, TokenType


class LoginRequest(BaseModel):
    """Describes the structure of a login request."""

    username: Annotated[str, Field(max_length=100, description="Username or email address")]
    password: Annotated[str, Field(max_length=128)]

    @field_validator("username", "password")
    @classmethod
    def check_not_blank(cls, value: str, info: ValidationInfo) -> str:
        if not value or not value.strip():
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return value


class RefreshTokenRequest(BaseModel):
    """Model for refresh token request.

    Mobile clients send the token here, web clients rely on the `refresh_token` cookie.
    """

    refresh_token: Annotated[
        Optional[str],
        Field(default=None, validation_alias=AliasChoices("refreshToken", "refresh_token")),
    ]


class TokenResponse(BaseModel):
    """Body returned by the login, refresh and logout endpoints.

    Fields left as None are dropped from the JSON body.
    """

    access_token: Annotated[Optional[str], Field(default=None, serialization_alias="accessToken")]
    refresh_token: Annotated[Optional[str], Field(default=None, serialization_alias="refreshToken")]
    token_type: Annotated[Optional[str], Field(default=None, serialization_alias="tokenType")]
    expires_in: Annotated[Optional[int], Field(default=None, serialization_alias="expiresIn")]  # Access token expiry in seconds
    username: Annotated[Optional[str], Field(default=None)]
    message: Annotated[Optional[str], Field(default=None)]


class Principal(BaseModel):
    """The authenticated caller: a subject and its roles."""

    model_config = ConfigDict(frozen=True)

    subject: str
    roles: FrozenSet[str] = frozenset()


class TokenClaims(BaseModel):
    """Model representing data contained in a signed token."""

    model_config = ConfigDict(frozen=True)

    subject: str
    roles: FrozenSet[str] = frozenset()
    client_type: ClientType
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime

    @property
    def principal(self) -> Principal:
        return Principal(subject=self.subject, roles=self.roles)


class TokenPair(BaseModel):
    """Model representing both access and refresh tokens."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    client_type: ClientType
    issued_at: datetime
