"""Moves tokens between the API and its clients.

Web clients receive tokens as HttpOnly cookies, mobile clients receive them in
the JSON body. Incoming tokens are looked up in the matching channels.
"""

from typing import Optional

from fastapi import Request, Response
from fastapi.security.utils import get_authorization_scheme_param

from models.helpers import ClientType, TokenType
from schema.security import RefreshTokenRequest, TokenPair
from security.issuer import TokenIssuer

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"

ACCESS_TOKEN_COOKIE_PATH = "/"
REFRESH_TOKEN_COOKIE_PATH = "/auth/refresh"  # Only ever sent to the refresh endpoint

CLIENT_TYPE_HEADER = "X-Client-Type"
USER_AGENT_HEADER = "User-Agent"
AUTHORIZATION_HEADER = "Authorization"
BEARER_SCHEME = "Bearer"

# Matched case-sensitively against the User-Agent header
MOBILE_USER_AGENT_KEYWORDS = (
    "Android",
    "iPhone",
    "iPad",
    "iPod",
    "BlackBerry",
    "IEMobile",
    "Opera Mini",
    "Windows Phone",
    "webOS",
    "Mobile",
    "mobile",
)


def attach_cookie(response: Response, name: str, value: str, path: str, max_age: int) -> None:
    """Sets an HttpOnly, Secure cookie on the response.

    Args:
        response (Response): Outgoing response.
        name (str): Cookie name.
        value (str): Cookie value.
        path (str): Path scope of the cookie.
        max_age (int): Lifetime in seconds, 0 deletes the cookie.
    """
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path=path,
        secure=True,
        httponly=True,
        samesite="lax",
    )


def attach_token_cookies(response: Response, pair: TokenPair, issuer: TokenIssuer) -> None:
    """Sets the access and refresh cookies for a freshly issued pair."""
    attach_cookie(
        response,
        ACCESS_TOKEN_COOKIE,
        pair.access_token,
        ACCESS_TOKEN_COOKIE_PATH,
        issuer.expires_in(pair.client_type, TokenType.ACCESS),
    )
    attach_cookie(
        response,
        REFRESH_TOKEN_COOKIE,
        pair.refresh_token,
        REFRESH_TOKEN_COOKIE_PATH,
        issuer.expires_in(pair.client_type, TokenType.REFRESH),
    )


def clear_cookies(response: Response) -> None:
    """Expires both token cookies, whatever kind of client is calling."""
    attach_cookie(response, ACCESS_TOKEN_COOKIE, "", ACCESS_TOKEN_COOKIE_PATH, 0)
    attach_cookie(response, REFRESH_TOKEN_COOKIE, "", REFRESH_TOKEN_COOKIE_PATH, 0)


def extract_refresh_token(payload: Optional[RefreshTokenRequest], request: Request) -> Optional[str]:
    """Finds the refresh token of a refresh request.

    A token in the request body (mobile clients) wins over the
    `refresh_token` cookie (web clients).

    Returns:
        Optional[str]: The refresh token, or None when the request carries none.
    """
    if payload is not None and payload.refresh_token:
        return payload.refresh_token

    return request.cookies.get(REFRESH_TOKEN_COOKIE) or None


def extract_access_token(request: Request) -> Optional[str]:
    """Finds the access token of an ordinary request.

    An `Authorization: Bearer` header wins over the `access_token` cookie.
    """
    scheme, param = get_authorization_scheme_param(request.headers.get(AUTHORIZATION_HEADER))
    if scheme == BEARER_SCHEME:  # Case-sensitive, "bearer" is not accepted
        return param.strip() or None

    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def is_mobile_user_agent(user_agent: str) -> bool:
    return any(keyword in user_agent for keyword in MOBILE_USER_AGENT_KEYWORDS)


def resolve_client_type(request: Request) -> ClientType:
    """Detects whether the caller is a web or a mobile client.

    The `X-Client-Type` header wins when it names a known client type. Otherwise
    the User-Agent is inspected for mobile platforms, and WEB is the fallback.
    """
    header = request.headers.get(CLIENT_TYPE_HEADER)
    if header and header.strip():
        try:
            return ClientType(header.strip().upper())
        except ValueError:
            pass  # Unknown value, fall back to User-Agent detection

    user_agent = request.headers.get(USER_AGENT_HEADER)
    if user_agent and is_mobile_user_agent(user_agent):
        return ClientType.MOBILE

    return ClientType.WEB
