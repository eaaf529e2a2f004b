"""Authentication gate: bearer-token middleware and the current-user dependency."""
import logging
from collections.abc import Iterable
from uuid import UUID

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from core.request_context import AuthGateError, RequestContext, TokenError
from services.exceptions import InvalidTokenError
from services.token_service import TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Exact paths reachable without a token. Prefixes and trailing-slash variants are not public.
PUBLIC_PATHS = frozenset({
    "/api/health",
    "/api/auth/register",
    "/api/auth/login",
})

UNAUTHORIZED_MESSAGE = "Invalid or missing token"


def extract_user_id(auth_header: str | None, token_service: TokenService) -> UUID:
    """
    Resolve the user id from an Authorization header value.

    The scheme must be exactly "Bearer" followed by one space. Lowercase schemes,
    extra spaces, and other schemes are rejected rather than normalized.

    Raises:
        AuthGateError: With the reason the header was rejected.
    """
    if auth_header is None:
        raise AuthGateError(TokenError.MISSING)

    if not auth_header.startswith(BEARER_PREFIX):
        raise AuthGateError(TokenError.INVALID_FORMAT)
    token = auth_header[len(BEARER_PREFIX):]

    try:
        claims = token_service.verify(token)
    except InvalidTokenError as e:
        raise AuthGateError(TokenError.INVALID_TOKEN) from e

    try:
        return UUID(claims.sub)
    except ValueError as e:
        raise AuthGateError(TokenError.INVALID_USER_ID) from e


def unauthorized_response() -> JSONResponse:
    """The single 401 body used for every authentication failure."""
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": UNAUTHORIZED_MESSAGE},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthGateMiddleware(BaseHTTPMiddleware):
    """
    Reject unauthenticated requests before they reach routing.

    Public paths pass through untouched. Every other request needs a valid bearer
    token; on success the user id is stored as `request.state.auth`, on failure
    the middleware answers 401 itself and the route is never called.
    """

    def __init__(
        self,
        app: ASGIApp,
        token_service: TokenService,
        public_paths: Iterable[str] = PUBLIC_PATHS,
    ) -> None:
        super().__init__(app)
        self.token_service = token_service
        self.public_paths = frozenset(public_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Classify the request and either forward it or reject it."""
        if request.url.path in self.public_paths:
            return await call_next(request)

        try:
            user_id = extract_user_id(
                request.headers.get("Authorization"), self.token_service,
            )
        except AuthGateError as e:
            logger.debug(
                "Rejected %s %s: %s", request.method, request.url.path, e.reason,
            )
            return unauthorized_response()

        request.state.auth = RequestContext(user_id=user_id)
        return await call_next(request)


def get_current_user_id(request: Request) -> UUID:
    """
    Dependency that returns the authenticated user's id.

    Raises InvalidTokenError if the route was reached without passing the gate.
    """
    context: RequestContext | None = getattr(request.state, "auth", None)
    if context is None:
        raise InvalidTokenError()
    return context.user_id
