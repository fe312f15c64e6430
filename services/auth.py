"""Login, refresh and logout flows for web and mobile clients."""

import logfire

from fastapi import Depends, Request, Response

from typing import Annotated, Optional

from models.helpers import ClientType, TokenType
from schema.security import LoginRequest, Principal, RefreshTokenRequest, TokenPair, TokenResponse
from security.context import AuthContext
from security.exceptions import InvalidRefreshToken, MissingRefreshToken, TokenError, WrongTokenType
from security.helpers import CredentialVerifier, get_credential_verifier
from security.issuer import TokenIssuer, get_token_issuer
from security.tokens import JwtTokenCodec, get_token_codec
from security.transport import attach_token_cookies, clear_cookies, extract_refresh_token

TOKEN_TYPE = "Bearer"


class AuthenticationService:
    """Ties credential checks, token issuance and token transport together.

    No issued token is recorded anywhere. A refresh hands out a new pair and the
    previous refresh token simply stays valid until it expires.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        issuer: TokenIssuer,
        codec: JwtTokenCodec,
    ):
        self.verifier = verifier
        self.issuer = issuer
        self.codec = codec

    async def login(
        self,
        payload: LoginRequest,
        client_type: ClientType,
        response: Response,
        context: Optional[AuthContext] = None,
    ) -> TokenResponse:
        """Authenticates the caller and issues a token pair for `client_type`.

        Args:
            payload (LoginRequest): Submitted credentials.
            client_type (ClientType): Client the tokens are issued to.
            response (Response): Outgoing response, receives the cookies of web clients.
            context (Optional[AuthContext], optional): Context of the current request.

        Raises:
            InvalidCredentials: Raised when the credentials are wrong.
            AuthenticationUnavailable: Raised when the credential check fails unexpectedly.

        Returns:
            TokenResponse: The shaped response body.
        """
        with logfire.span(f"{client_type.value} login for user: {payload.username}"):
            principal = await self.verifier.authenticate(payload.username, payload.password, context)
            pair = self.issuer.create_token_pair(principal, client_type)

            logfire.info(f"Issued {client_type.value} token pair for user {principal.subject}")

            return self._shape(pair, principal, response, message="Authentication successful")

    def refresh(
        self,
        payload: Optional[RefreshTokenRequest],
        request: Request,
        response: Response,
    ) -> TokenResponse:
        """Exchanges a refresh token for a new token pair.

        The new pair is bound to the client type recorded in the refresh token,
        not to the headers of the current request.

        Raises:
            MissingRefreshToken: Raised when neither the body nor the cookie carries a token.
            InvalidRefreshToken: Raised when the token is malformed, forged or expired.
            WrongTokenType: Raised when an access token is presented.

        Returns:
            TokenResponse: The shaped response body.
        """
        refresh_token = extract_refresh_token(payload, request)

        if refresh_token is None:
            logfire.info("Refresh rejected: no refresh token in request")
            raise MissingRefreshToken()

        try:
            claims = self.codec.decode(refresh_token)
        except TokenError as e:
            logfire.info(f"Refresh rejected: {type(e).__name__}")
            raise InvalidRefreshToken() from e

        if claims.token_type is not TokenType.REFRESH:
            logfire.warning(f"Refresh rejected: {claims.token_type.value} token presented for user {claims.subject}")
            raise WrongTokenType()

        pair = self.issuer.create_token_pair(claims.principal, claims.client_type)

        logfire.info(f"Tokens refreshed for user {claims.subject} ({claims.client_type.value})")

        return self._shape(pair, claims.principal, response, message="Token refreshed successfully")

    def logout(self, context: AuthContext, response: Response) -> TokenResponse:
        """Clears the token cookies and the authentication of the current request.

        Tokens held by a client outside of cookies stay usable until they expire.
        """
        clear_cookies(response)

        if context.is_authenticated:
            logfire.info(f"User {context.principal.subject} logged out")
        context.clear()

        return TokenResponse(message="Logged out successfully")

    def _shape(
        self, pair: TokenPair, principal: Principal, response: Response, message: str
    ) -> TokenResponse:
        expires_in = self.issuer.expires_in(pair.client_type, TokenType.ACCESS)

        if pair.client_type is ClientType.WEB:
            attach_token_cookies(response, pair, self.issuer)
            return TokenResponse(
                token_type=TOKEN_TYPE,
                expires_in=expires_in,
                username=principal.subject,
                message=message,
            )

        return TokenResponse(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            token_type=TOKEN_TYPE,
            expires_in=expires_in,
            username=principal.subject,
        )


def get_authentication_service(
    verifier: Annotated[CredentialVerifier, Depends(get_credential_verifier)],
) -> AuthenticationService:
    """Factory function to create an AuthenticationService instance."""
    return AuthenticationService(
        verifier=verifier,
        issuer=get_token_issuer(),
        codec=get_token_codec(),
    )
