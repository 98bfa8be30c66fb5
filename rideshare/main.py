from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from rideshare.config import settings
import importlib
import logging
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from rideshare.logging_setup import setup_logging, TRACE_ID_CTX
import uuid
import sentry_sdk
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker
from rideshare.db.session import get_sessionmaker
from rideshare.metrics import BUSINESS_RULE_VIOLATIONS
from rideshare.services import search_log
from rideshare.services.exceptions import (
    BusinessRuleViolation,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    RideshareError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# initialize logging and Sentry
setup_logging(settings.LOG_LEVEL, service=settings.APP_NAME, sql_echo=settings.DEBUG)
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)
    app.add_middleware(SentryAsgiMiddleware)


@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    TRACE_ID_CTX.set(trace_id)
    response = await call_next(request)
    response.headers["X-Trace-Id"] = trace_id
    return response


# error kind -> HTTP status; checked in order, most specific first
ERROR_STATUS = (
    (NotFoundError, 404),
    (UnauthorizedError, 401),
    (ForbiddenError, 403),
    (BusinessRuleViolation, 400),
    (InvalidInputError, 400),
)


def status_for(exc: RideshareError) -> int:
    for kind, code in ERROR_STATUS:
        if isinstance(exc, kind):
            return code
    return 400


@app.exception_handler(RideshareError)
async def rideshare_error_handler(request: Request, exc: RideshareError):
    BUSINESS_RULE_VIOLATIONS.labels(code=exc.code).inc()
    return JSONResponse(status_code=status_for(exc), content={"detail": exc.message, "code": exc.code})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "internal"})


# List of module names to include as routers
MODULES = [
    "auth",
    "rides",
    "bookings",
    "analytics",
    "cities",
]


for mod in MODULES:
    pkg = importlib.import_module(f"rideshare.modules.{mod}.router")
    app.include_router(pkg.router, prefix=f"/{mod}")


@app.on_event("shutdown")
async def flush_search_logs():
    await search_log.drain()


@app.get("/")
async def root():
    return {"app": settings.APP_NAME, "status": "ok"}


@app.get("/metrics")
async def metrics():
    content = generate_latest()
    return Response(content=content, media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ready")
async def ready(sessions: async_sessionmaker = Depends(get_sessionmaker)):
    try:
        async with sessions() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Readiness check failed")
        return Response(status_code=503, content="database unavailable")
    return {"status": "ready"}
