"""Application settings loaded from the environment."""

import os

from functools import lru_cache
from typing import Annotated, List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from security.exceptions import ConfigurationError

load_dotenv()

# HS256 needs at least 256 bits of key material
MIN_SECRET_LENGTH = 32


class Settings(BaseModel):
    """Runtime configuration of the API."""

    jwt_secret: Annotated[str, Field(repr=False)]
    access_token_expire_web_seconds: Annotated[int, Field(default=900, gt=0)]
    access_token_expire_mobile_seconds: Annotated[int, Field(default=900, gt=0)]
    refresh_token_expire_web_seconds: Annotated[int, Field(default=86400, gt=0)]
    refresh_token_expire_mobile_seconds: Annotated[int, Field(default=2592000, gt=0)]
    database_connection_string: Annotated[str, Field(default="mongodb://localhost:27017")]
    database_name: Annotated[str, Field(default="modulith")]
    log_level: Annotated[str, Field(default="INFO")]
    logfire_write_token: Annotated[str | None, Field(default=None, repr=False)]
    cors_allow_origins: Annotated[List[str], Field(default=["*"])]

    @classmethod
    def from_env(cls) -> "Settings":
        """Builds the settings from environment variables.

        Raises:
            ConfigurationError: Raised when the signing secret is missing or too short.

        Returns:
            Settings: The loaded settings.
        """
        secret = os.getenv("JWT_SECRET")

        if not secret or len(secret.encode("utf-8")) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"JWT_SECRET must be set and at least {MIN_SECRET_LENGTH} bytes long"
            )

        origins = os.getenv("CORS_ALLOW_ORIGINS", "*")

        return cls(
            jwt_secret=secret,
            access_token_expire_web_seconds=int(os.getenv("ACCESS_TOKEN_EXPIRE_WEB_SECONDS", "900")),
            access_token_expire_mobile_seconds=int(os.getenv("ACCESS_TOKEN_EXPIRE_MOBILE_SECONDS", "900")),
            refresh_token_expire_web_seconds=int(os.getenv("REFRESH_TOKEN_EXPIRE_WEB_SECONDS", "86400")),
            refresh_token_expire_mobile_seconds=int(os.getenv("REFRESH_TOKEN_EXPIRE_MOBILE_SECONDS", "2592000")),
            database_connection_string=os.getenv("DATABASE_CONNECTION_STRING", "mongodb://localhost:27017"),
            database_name=os.getenv("DATABASE_NAME", "modulith"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            logfire_write_token=os.getenv("LOGFIRE_WRITE_TOKEN") or None,
            cors_allow_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        )


@lru_cache
def get_settings() -> Settings:
    """Returns the process-wide settings, loading them on first use."""
    return Settings.from_env()
