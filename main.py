from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ollacart import __version__
from ollacart.core.config import ALLOWED_ORIGINS, LOG_LEVEL
from ollacart.core.exceptions import OllaCartError
from ollacart.core.logging import get_logger, set_trace_id, setup_logging
from ollacart.routers.affiliate import router as affiliate_router
from ollacart.routers.cart import router as cart_router
from ollacart.routers.payments import router as payments_router
from ollacart.routers.products import router as products_router
from ollacart.routers.retailers import router as retailers_router
from ollacart.routers.webhooks import router as webhooks_router
from ollacart.services.payment_provider import MockPaymentProvider
from ollacart.store import open_store

logger = get_logger(__name__)

# =============================================================================
# APP CONFIGURATION
# =============================================================================

API_TITLE = "OllaCart API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ouvre le store configuré au démarrage, le ferme à l'arrêt."""
    setup_logging(LOG_LEVEL)
    app.state.store = await open_store()
    app.state.provider = MockPaymentProvider()
    logger.info("Store opened", backend=type(app.state.store).__name__)
    try:
        yield
    finally:
        await app.state.store.close()


app = FastAPI(
    title=API_TITLE,
    version=__version__,
    description="Social shopping catalog, multi-cart, affiliate tracking & retailer payments API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# =============================================================================
# MIDDLEWARE - Request tracking & timing
# =============================================================================

@app.middleware("http")
async def add_request_context(request: Request, call_next):
    """Add trace_id and timing to all requests."""
    trace_id = set_trace_id(request.headers.get("X-Request-ID"))
    start_time = time.perf_counter()

    response = await call_next(request)

    duration_ms = (time.perf_counter() - start_time) * 1000
    response.headers["X-Request-ID"] = trace_id
    response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

    # Log request (skip health checks)
    if request.url.path != "/health":
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

    return response


# =============================================================================
# ERROR HANDLING
# =============================================================================

@app.exception_handler(OllaCartError)
async def domain_error_handler(request: Request, exc: OllaCartError):
    """Erreurs du domaine -> status HTTP porté par l'exception."""
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            status_code=exc.status_code,
            error_type=type(exc).__name__,
            entity=exc.entity,
            entity_id=exc.entity_id,
            exc_info=False,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "error": type(exc).__name__,
            "retryable": exc.retryable,
        },
    )


# =============================================================================
# SYSTEM ENDPOINTS - Health & Info
# =============================================================================

@app.get("/health")
def health():
    """Health check endpoint for load balancers & monitoring."""
    return {"status": "ok"}


@app.get("/v1/info")
def api_info():
    """API version and status information."""
    return {
        "name": API_TITLE,
        "version": __version__,
        "status": "operational",
    }


app.include_router(products_router)    # /v1/products/*
app.include_router(cart_router)        # /v1/cart/*
app.include_router(affiliate_router)   # /v1/affiliate/*
app.include_router(retailers_router)   # /v1/retailers/*
app.include_router(payments_router)    # /v1/payments/*
app.include_router(webhooks_router)    # /v1/webhooks/*


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
