import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models so every table is registered with Base before create_all
from . import models  # noqa: F401
from .database import Base, engine
from .domain.automations import router as automations_router
from .domain.businesses import admin_router
from .domain.businesses import router as business_router
from .domain.customers import router as customers_router
from .domain.dashboard import router as dashboard_router
from .domain.inventory import router as inventory_router
from .domain.payments import router as payments_router
from .domain.quotes import router as quotes_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Back office API starting")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info(f"✅ {len(Base.metadata.tables)} tables ready")
    except Exception as e:
        logger.error(f"❌ Table creation failed: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client().ping()
        logger.info("📡 Redis reachable, rate limits are shared across workers")
    except Exception as e:
        logger.warning(f"⚠️ Redis unreachable, rate limits fall back to per-process counters: {e}")

    yield
    logger.info("👋 Back office API stopping")


app = FastAPI(title="Back Office API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A missing Authorization header is a 401, not a 422"""
    errors = exc.errors()
    if any("authorization" in str(error.get("loc", "")).lower() for error in errors):
        logger.warning(f"🔒 No bearer token on {request.method} {request.url.path}")
        return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

    logger.warning(f"⚠️ Validation error on {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-JSON context values (e.g. ValueError) stringified"""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Routes
app.include_router(admin_router)
app.include_router(business_router)
app.include_router(customers_router)
app.include_router(inventory_router)
app.include_router(quotes_router)
app.include_router(payments_router)
app.include_router(automations_router)
app.include_router(dashboard_router)


@app.get("/")
def root():
    return {"message": "Back Office API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Redis backs rate limiting and the webhook job queue"""
    from .rate_limiter import get_redis_client

    try:
        started = time.time()
        get_redis_client().ping()
        latency_ms = round((time.time() - started) * 1000, 2)
    except Exception as e:
        logger.warning(f"⚠️ Redis health check failed: {e}")
        return {"status": "degraded", "redis": {"connected": False, "rate_limiting": "in-memory", "error": str(e)}}

    return {"status": "healthy", "redis": {"connected": True, "rate_limiting": "redis", "latency_ms": latency_ms}}
