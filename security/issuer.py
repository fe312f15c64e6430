"""Issues access/refresh token pairs with per-client-type lifetimes."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from models.helpers import ClientType, TokenType
from schema.security import Principal, TokenClaims, TokenPair
from security.tokens import JwtTokenCodec, get_token_codec
from utils.settings import Settings, get_settings

ExpirationTable = Dict[Tuple[ClientType, TokenType], timedelta]


def expiration_table_from_settings(settings: Settings) -> ExpirationTable:
    """Builds the (client type, token type) -> lifetime lookup table."""
    return {
        (ClientType.WEB, TokenType.ACCESS): timedelta(seconds=settings.access_token_expire_web_seconds),
        (ClientType.MOBILE, TokenType.ACCESS): timedelta(seconds=settings.access_token_expire_mobile_seconds),
        (ClientType.WEB, TokenType.REFRESH): timedelta(seconds=settings.refresh_token_expire_web_seconds),
        (ClientType.MOBILE, TokenType.REFRESH): timedelta(seconds=settings.refresh_token_expire_mobile_seconds),
    }


class TokenIssuer:
    """Creates token pairs for an authenticated principal."""

    def __init__(
        self,
        codec: JwtTokenCodec,
        expirations: ExpirationTable,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        missing = [
            (client_type, token_type)
            for client_type in ClientType
            for token_type in TokenType
            if (client_type, token_type) not in expirations
        ]
        if missing:
            raise ValueError(f"Missing token lifetimes for {missing}")

        self.codec = codec
        self.expirations = dict(expirations)
        self.clock = clock

    def expiration(self, client_type: ClientType, token_type: TokenType) -> timedelta:
        return self.expirations[(client_type, token_type)]

    def expires_in(self, client_type: ClientType, token_type: TokenType) -> int:
        """Lifetime in whole seconds, as reported in responses and cookie Max-Age."""
        return int(self.expiration(client_type, token_type).total_seconds())

    def create_token(
        self,
        principal: Principal,
        client_type: ClientType,
        token_type: TokenType,
        issued_at: Optional[datetime] = None,
    ) -> str:
        issued_at = (issued_at or self.clock()).replace(microsecond=0)
        claims = TokenClaims(
            subject=principal.subject,
            roles=principal.roles,
            client_type=client_type,
            token_type=token_type,
            issued_at=issued_at,
            expires_at=issued_at + self.expiration(client_type, token_type),
        )
        return self.codec.encode(claims)

    def create_token_pair(self, principal: Principal, client_type: ClientType) -> TokenPair:
        """Issues an access token and a refresh token sharing the same issued-at time.

        Args:
            principal (Principal): The authenticated subject and its roles.
            client_type (ClientType): Client the pair is issued to.

        Returns:
            TokenPair: The new pair.
        """
        issued_at = self.clock().replace(microsecond=0)

        return TokenPair(
            access_token=self.create_token(principal, client_type, TokenType.ACCESS, issued_at),
            refresh_token=self.create_token(principal, client_type, TokenType.REFRESH, issued_at),
            client_type=client_type,
            issued_at=issued_at,
        )


_token_issuer: Optional[TokenIssuer] = None


def get_token_issuer() -> TokenIssuer:
    """Get the process-wide token issuer instance."""
    global _token_issuer

    if _token_issuer is None:
        _token_issuer = TokenIssuer(
            codec=get_token_codec(),
            expirations=expiration_table_from_settings(get_settings()),
        )

    return _token_issuer
