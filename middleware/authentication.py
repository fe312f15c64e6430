"""
FastAPI middleware that authenticates requests from a bearer header or cookie.

The middleware never rejects a request. It only fills in the request's
authentication context; routes that need a caller depend on
`security.context.get_current_principal`.
"""

from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from security.context import get_auth_context
from security.tokens import JwtTokenCodec, get_token_codec
from security.transport import extract_access_token
from utils.logger import get_logger

logger = get_logger(__name__)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Per-request authentication gate.

    A valid token moves the request from anonymous to authenticated. Token type
    is not checked here, so a valid refresh token also authenticates.
    """

    def __init__(self, app: FastAPI, codec: Optional[JwtTokenCodec] = None):
        """
        Initialize the authentication middleware.

        Args:
            app: FastAPI application instance
            codec: Token codec to validate with (default: the process-wide codec)
        """
        super().__init__(app)
        self._codec = codec

    @property
    def codec(self) -> JwtTokenCodec:
        if self._codec is None:
            self._codec = get_token_codec()
        return self._codec

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Authenticate the request if it carries a valid token, then continue.

        Args:
            request: FastAPI Request object
            call_next: Next middleware or route handler

        Returns:
            Response object
        """
        context = get_auth_context(request)

        try:
            token = extract_access_token(request)

            if token and self.codec.is_valid(token):
                context.authenticate(self.codec.get_principal(token))
                logger.debug(f"Authenticated {context.principal.subject} on {request.url.path}")
        except Exception as e:
            logger.error(f"Could not set user authentication on request context: {e}")
            context.clear()

        return await call_next(request)
