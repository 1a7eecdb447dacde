"""Purchasing FastAPI application.

Web server for the in-store cart and purchase records. Commands are
processed synchronously per request inside the purchasing domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay:
#   - unset/"test"  → in-memory repositories
#   - "production"  → SQLite repositories under data/
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from purchasing.domain import purchasing  # noqa: E402
from purchasing.utils.logging import add_context, clear_context

purchasing.init()

_DOMAIN_PREFIXES = ("/carts", "/purchases")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Purchasing API",
    description="In-store shopping carts and closed purchase records",
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
    """Push the purchasing domain context for cart and purchase routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        clear_context()
        add_context(method=request.method, path=request.url.path)
        with purchasing.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from purchasing.api import cart_router, purchase_router, register_error_handlers  # noqa: E402

app.include_router(cart_router)
app.include_router(purchase_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "purchasing": {"name": purchasing.name},
            },
        }
    )
