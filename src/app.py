"""Parcelrun Dispatch FastAPI application.

Web server that processes dispatch commands synchronously via HTTP. Every
request runs inside the dispatch domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - unset/"test" → event_processing = "sync"  (handlers fire after the UoW)
#   - "production" → event_processing = "async" (handlers fire via Engine)
from dispatch.domain import dispatch  # noqa: E402
from dispatch.exceptions import Unauthorized  # noqa: E402
from dispatch.order.numbering import RandomOrderNumbers, set_order_numbers  # noqa: E402
from dispatch.utils.logging import configure_logging  # noqa: E402
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

configure_logging()
dispatch.init()
set_order_numbers(RandomOrderNumbers())


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Parcelrun Dispatch API",
    description="Delivery order lifecycle, partner dispatch, handoff codes and location telemetry",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized):
    return JSONResponse(status_code=403, content={"error": exc.messages})


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the dispatch domain context for each request."""
    with dispatch.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from dispatch.api import location_router, order_router, partner_router  # noqa: E402

app.include_router(order_router)
app.include_router(partner_router)
app.include_router(location_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": dispatch.name})
