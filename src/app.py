"""Storefront FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
runs inside the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay ("production" → PostgreSQL).
from storefront.domain import storefront  # noqa: E402
from storefront.media.store import build_image_store  # noqa: E402
from storefront.utils.logging import add_context, clear_context  # noqa: E402

storefront.init()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the image store once per process and close it on shutdown."""
    app.state.image_store = build_image_store()
    logger.info("image_store_ready", store=type(app.state.image_store).__name__)
    try:
        yield
    finally:
        app.state.image_store.close()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="E-commerce storefront: catalogue, cart, checkout and site administration",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and bind request details to log lines."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    with storefront.domain_context():
        return await call_next(request)


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.catalogue.api import (  # noqa: E402
    admin_product_router,
    comment_router,
    draft_router,
    product_activity_router,
    product_router,
)
from storefront.identity.api import account_router, users_router  # noqa: E402
from storefront.media.api import router as image_router  # noqa: E402
from storefront.ordering.api import cart_router, order_router, wishlist_router  # noqa: E402
from storefront.payments.api import paypal_router  # noqa: E402
from storefront.site.api import settings_router, suggestion_router  # noqa: E402

app.include_router(account_router)
app.include_router(users_router)
app.include_router(product_router)
app.include_router(product_activity_router)
app.include_router(admin_product_router)
app.include_router(comment_router)
app.include_router(draft_router)
app.include_router(image_router)
app.include_router(cart_router)
app.include_router(wishlist_router)
app.include_router(order_router)
app.include_router(paypal_router)
app.include_router(settings_router)
app.include_router(suggestion_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": storefront.name}})
