"""FastAPI glue shared by every router: principal extraction and error mapping.

The fronting auth layer forwards the authenticated user in ``X-User-Id`` and
``X-User-Role``. Protean's ``register_exception_handlers`` covers validation
(400), not-found (404) and invalid-state (409) errors; the handlers here add
the ones Protean does not map: a missing principal (401) and store failures
(502), including a checkout that committed only some seller groups.
"""

import structlog
from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse

from shared.errors import NotAuthenticatedError, PartialCheckoutFailure, StoreError
from shared.logging import bind_session
from shared.session import Session, parse_role

logger = structlog.get_logger(__name__)


def get_session(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Session:
    session = Session(user_id=x_user_id or None, role=parse_role(x_user_role))
    if session.is_authenticated:
        bind_session(session.user_id, role=session.role.value)
    return session


def register_workflow_error_handlers(app: FastAPI) -> None:
    """Map the marketplace's own exceptions to HTTP responses."""

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        body: dict = {"error": str(exc)}
        if isinstance(exc, PartialCheckoutFailure):
            body["created_orders"] = exc.created_order_numbers
            body["failed_seller_id"] = exc.failed_seller_id
            body["pending_seller_ids"] = exc.pending_seller_ids

        logger.error(
            "Request failed",
            path=request.url.path,
            method=request.method,
            action=exc.action,
            error_type=exc.__class__.__name__,
            error=str(exc),
        )
        return JSONResponse(status_code=502, content=body)
