"""Marketplace FastAPI application.

Serves the cart, checkout, order status and receipt workflows over HTTP.
The store adapter is chosen by ``STORE_ADAPTER`` (``memory`` or
``sqlalchemy`` with ``DATABASE_URL``).

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from catalogue.api import product_router
from ordering.api import cart_router, order_router
from payments.api import receipt_router
from shared.api import register_workflow_error_handlers
from shared.logging import clear_context, configure_logging, get_environment
from shared.store import get_store

configure_logging()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Multi-seller marketplace: cart, checkout, orders and payment receipts",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def logging_context_middleware(request: Request, call_next):
    """Start every request with an empty structlog context."""
    clear_context()
    try:
        return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(product_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(receipt_router)
register_exception_handlers(app)
register_workflow_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    store = get_store()
    return JSONResponse(
        content={
            "status": "ok",
            "environment": get_environment(),
            "store": {
                "adapter": store.__class__.__name__,
                "transactional": store.supports_transactions,
            },
        }
    )
