"""
Auth router for handling user authentication related endpoints.
"""

from fastapi import APIRouter, Body, Depends, Request, Response, status

from typing import Annotated, Optional

from models.helpers import ClientType
from schema.security import LoginRequest, RefreshTokenRequest, TokenResponse
from security.context import AuthContext, get_auth_context
from security.transport import resolve_client_type
from services.auth import AuthenticationService, get_authentication_service

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)

UNAUTHORIZED_RESPONSE = {status.HTTP_401_UNAUTHORIZED: {"description": "Authentication failed"}}


@router.post(
    "/web/login",
    response_model=TokenResponse,
    response_model_exclude_none=True,
    responses=UNAUTHORIZED_RESPONSE,
)
async def web_login(
    payload: LoginRequest,
    response: Response,
    auth_service: Annotated[AuthenticationService, Depends(get_authentication_service)],
    context: Annotated[AuthContext, Depends(get_auth_context)],
):
    """Authenticates a web client.

    Tokens are returned as HttpOnly cookies: `access_token` for the whole API and
    `refresh_token` scoped to `/auth/refresh`. The body never contains the tokens.
    """
    return await auth_service.login(payload, ClientType.WEB, response, context)


@router.post(
    "/mobile/login",
    response_model=TokenResponse,
    response_model_exclude_none=True,
    responses=UNAUTHORIZED_RESPONSE,
)
async def mobile_login(
    payload: LoginRequest,
    response: Response,
    auth_service: Annotated[AuthenticationService, Depends(get_authentication_service)],
    context: Annotated[AuthContext, Depends(get_auth_context)],
):
    """Authenticates a mobile client and returns both tokens in the response body."""
    return await auth_service.login(payload, ClientType.MOBILE, response, context)


@router.post(
    "/login",
    response_model=TokenResponse,
    response_model_exclude_none=True,
    responses=UNAUTHORIZED_RESPONSE,
)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    auth_service: Annotated[AuthenticationService, Depends(get_authentication_service)],
    context: Annotated[AuthContext, Depends(get_auth_context)],
):
    """Authenticates a client whose type is detected from the request.

    The `X-Client-Type` header (`WEB` or `MOBILE`) decides; without it the
    User-Agent is inspected, and web is the default.
    """
    return await auth_service.login(payload, resolve_client_type(request), response, context)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    response_model_exclude_none=True,
    responses=UNAUTHORIZED_RESPONSE,
)
async def refresh_token(
    request: Request,
    response: Response,
    auth_service: Annotated[AuthenticationService, Depends(get_authentication_service)],
    payload: Annotated[Optional[RefreshTokenRequest], Body()] = None,
):
    """Exchanges a refresh token for a new token pair.

    Mobile clients send `{"refreshToken": "..."}`; web clients send nothing and
    rely on the `refresh_token` cookie. The response is shaped for the client
    type the refresh token was issued to.

    ## Possible Errors
    - 401 Unauthorized: missing, invalid or expired refresh token, or an access token was sent.
    """
    return auth_service.refresh(payload, request, response)


@router.post("/logout", response_model=TokenResponse, response_model_exclude_none=True)
async def logout(
    response: Response,
    auth_service: Annotated[AuthenticationService, Depends(get_authentication_service)],
    context: Annotated[AuthContext, Depends(get_auth_context)],
):
    """Clears the token cookies. Always succeeds."""
    return auth_service.logout(context, response)
