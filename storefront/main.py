"""FastAPI application exposing the storefront context to a UI layer."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.api import cart, session, wishlist
from storefront.context import StorefrontContext, build_auth_client, build_context
from storefront.errors import (
    AuthenticationError,
    DuplicateEntryError,
    EntryValidationError,
    LocalPersistenceError,
    RemoteServiceError,
    RemoteUnavailableError,
    StorefrontError,
)
from storefront.log_config import configure_logging, log_config_warnings
from storefront.remote.auth import SupabaseAuthClient
from storefront.schemas.error import ErrorType, ValidationErrorDetail
from storefront.settings import AppSettings, get_settings
from storefront.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
)
from storefront.utils.request_context import get_request_id, set_request_id

logger = logging.getLogger(__name__)

# Most specific classes first; the first isinstance match wins.
_ERROR_STATUS: tuple[tuple[type[StorefrontError], ErrorType, int], ...] = (
    (EntryValidationError, ErrorType.VALIDATION_ERROR, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DuplicateEntryError, ErrorType.DUPLICATE_ENTRY, status.HTTP_409_CONFLICT),
    (AuthenticationError, ErrorType.AUTHENTICATION_ERROR, status.HTTP_401_UNAUTHORIZED),
    (RemoteUnavailableError, ErrorType.REMOTE_ERROR, status.HTTP_503_SERVICE_UNAVAILABLE),
    (RemoteServiceError, ErrorType.REMOTE_ERROR, status.HTTP_502_BAD_GATEWAY),
    (
        LocalPersistenceError,
        ErrorType.LOCAL_PERSISTENCE_ERROR,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    ),
)

_ERROR_MESSAGES: dict[ErrorType, str] = {
    ErrorType.VALIDATION_ERROR: "Invalid product",
    ErrorType.DUPLICATE_ENTRY: "Product already in wishlist",
    ErrorType.AUTHENTICATION_ERROR: "Authentication failed",
    ErrorType.REMOTE_ERROR: "Wishlist service unavailable",
    ErrorType.LOCAL_PERSISTENCE_ERROR: "Local storage failure",
    ErrorType.INTERNAL_ERROR: "Internal error",
}


def classify_error(exc: StorefrontError) -> tuple[ErrorType, int]:
    """Map a storefront exception onto an error type and HTTP status."""

    for error_class, error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_class):
            return error_type, status_code
    return ErrorType.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(
    settings: AppSettings | None = None,
    *,
    context: StorefrontContext | None = None,
    auth: SupabaseAuthClient | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    A pre-built ``context``/``auth`` pair is installed as-is; otherwise the
    lifespan builds both from ``settings`` on start-up.
    """

    active_settings = settings or get_settings()
    configure_logging(active_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_config_warnings(active_settings, logger)

        owned: list[object] = []
        if getattr(app.state, "context", None) is None:
            app.state.context = build_context(active_settings)
            owned.append(app.state.context)
        if getattr(app.state, "auth", None) is None:
            app.state.auth = build_auth_client(active_settings)
            if app.state.auth is not None:
                owned.append(app.state.auth)
        if app.state.auth is not None:
            app.state.context.attach_auth(app.state.auth)

        logger.info("Storefront API ready (local store: %s)", active_settings.local_store_scheme)
        yield

        logger.info("Shutting down storefront API")
        for resource in owned:
            await resource.aclose()

    app = FastAPI(
        title="Storefront API",
        version="0.1.0",
        description="Cart and wishlist operations with Supabase wishlist sync.",
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = active_settings
    app.state.context = context
    app.state.auth = auth
    if context is not None and auth is not None:
        context.attach_auth(auth)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add unique request ID to each request for tracking."""
        request_id = str(uuid.uuid4())
        set_request_id(request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StorefrontError, storefront_exception_handler)

    app.include_router(cart.router, prefix="/cart", tags=["cart"])
    app.include_router(wishlist.router, prefix="/wishlist", tags=["wishlist"])
    app.include_router(session.router, prefix="/session", tags=["session"])

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        active_context: StorefrontContext = request.app.state.context
        return {
            "status": "ok",
            "wishlist_bound": active_context.wishlist.is_bound,
            "wishlist_sync_in_progress": active_context.wishlist.sync_in_progress,
        }

    return app


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


async def storefront_exception_handler(request: Request, exc: StorefrontError):
    """Translate storefront exceptions into ``ErrorResponse`` payloads."""
    error_type, status_code = classify_error(exc)

    if status_code >= 500:
        logger.error(
            "Request %s to %s failed: %s", get_request_id(), request.url.path, exc
        )
    else:
        logger.info(
            "Request %s to %s rejected: %s", get_request_id(), request.url.path, exc
        )

    error_response = build_error_response(
        error_type=error_type,
        message=_ERROR_MESSAGES[error_type],
        detail=str(exc),
        status_code=status_code,
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )
