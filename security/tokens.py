"""Signed JWT encoding and decoding for access and refresh tokens.

Every token is an HS256 JWT signed with one process-wide key derived from
`JWT_SECRET`. There is no key id, no rotation and no server-side token store:
a token is valid as long as its signature checks out and its `exp` claim lies
strictly in the future.
"""

from datetime import datetime, timezone
from typing import Optional

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError

from models.helpers import ClientType, TokenType
from schema.security import Principal, TokenClaims
from security.exceptions import (
    ConfigurationError,
    InvalidSignature,
    MalformedToken,
    TokenError,
    TokenExpired,
)
from utils.settings import MIN_SECRET_LENGTH, get_settings

ALGORITHM = "HS256"
ROLE_SEPARATOR = ","

# Expiration is checked here rather than by jose so that `exp == now` counts as expired
DECODE_OPTIONS = {"verify_exp": False, "verify_aud": False}


def pack_roles(roles) -> str:
    """Joins role names into the single `roles` claim, dropping empty names."""
    return ROLE_SEPARATOR.join(sorted(role for role in roles if role))


def unpack_roles(value: Optional[str]) -> frozenset[str]:
    """Splits the `roles` claim back into a set. Empty names are never reconstructed."""
    if not value:
        return frozenset()
    return frozenset(role for role in value.split(ROLE_SEPARATOR) if role)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JwtTokenCodec:
    """Encodes and decodes signed tokens with a single symmetric key."""

    def __init__(self, secret: str):
        if not secret or len(secret.encode("utf-8")) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"Token signing secret must be at least {MIN_SECRET_LENGTH} bytes long"
            )
        self._key = secret.encode("utf-8")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(algorithm={ALGORITHM!r})"

    def encode(self, claims: TokenClaims) -> str:
        """Signs `claims` into a compact JWT.

        Args:
            claims (TokenClaims): Subject, roles, client type, token type and timestamps.

        Returns:
            str: The encoded token. Identical claims always give an identical token.
        """
        payload = {
            "sub": claims.subject,
            "roles": pack_roles(claims.roles),
            "clientType": claims.client_type.value,
            "tokenType": claims.token_type.value,
            "iat": int(claims.issued_at.timestamp()),
            "exp": int(claims.expires_at.timestamp()),
        }
        return jwt.encode(payload, self._key, algorithm=ALGORITHM)

    def decode(self, token: str, now: Optional[datetime] = None) -> TokenClaims:
        """Verifies and decodes a token.

        Args:
            token (str): The encoded token.
            now (Optional[datetime], optional): Reference time for the expiration check. Defaults to the current time.

        Raises:
            MalformedToken: Raised when the token is not a JWT or misses required claims.
            InvalidSignature: Raised when the signature does not match the signing key.
            TokenExpired: Raised when `exp` is not strictly after `now`.

        Returns:
            TokenClaims: The decoded claims.
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken("Token is empty")

        try:
            jwt.get_unverified_claims(token)
        except JWTError as e:
            raise MalformedToken(str(e)) from e

        try:
            payload: dict = jwt.decode(token, self._key, algorithms=[ALGORITHM], options=DECODE_OPTIONS)
        except JWTClaimsError as e:
            raise MalformedToken(str(e)) from e
        except JWTError as e:
            raise InvalidSignature(str(e)) from e

        try:
            claims = TokenClaims(
                subject=payload["sub"],
                roles=unpack_roles(payload.get("roles")),
                client_type=ClientType(payload["clientType"]),
                token_type=TokenType(payload["tokenType"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise MalformedToken(f"Invalid token claims: {e}") from e

        if claims.expires_at <= (now or _now()):
            raise TokenExpired("Token has expired")

        return claims

    def is_valid(self, token: str, now: Optional[datetime] = None) -> bool:
        """Returns True if the token decodes and has not expired. Never raises."""
        try:
            self.decode(token, now)
            return True
        except TokenError:
            return False

    def get_username(self, token: str) -> str:
        return self.decode(token).subject

    def get_principal(self, token: str) -> Principal:
        return self.decode(token).principal

    def get_client_type(self, token: str) -> ClientType:
        return self.decode(token).client_type

    def get_token_type(self, token: str) -> TokenType:
        return self.decode(token).token_type


# Global codec instance, created once from configuration
_token_codec: Optional[JwtTokenCodec] = None


def get_token_codec() -> JwtTokenCodec:
    """Get the process-wide token codec instance."""
    global _token_codec

    if _token_codec is None:
        _token_codec = JwtTokenCodec(get_settings().jwt_secret)

    return _token_codec
