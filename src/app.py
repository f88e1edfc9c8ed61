"""Garment ledger FastAPI application.

Processes stock and fabric commands synchronously via HTTP. Every request
runs inside the ledger domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ledger.domain import ledger  # noqa: E402
from ledger.utils.logging import add_context, clear_context  # noqa: E402

ledger.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Garment Ledger API",
    description="Finished-good and fabric stock for a garment retailer",
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
    """Push the ledger domain context and bind request details to log lines."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    try:
        with ledger.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ledger.api import (  # noqa: E402
    auth_router,
    fabric_router,
    inventory_router,
    product_router,
    register_ledger_exception_handlers,
)

app.include_router(auth_router)
app.include_router(inventory_router)
app.include_router(product_router)
app.include_router(fabric_router)
register_ledger_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": ledger.name})
