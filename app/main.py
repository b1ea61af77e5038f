"""
main.py — Ashinaga Scholar & Staff Portal API

App assembly: middleware, exception handlers, router mounts and /health.
All business logic lives in services/; routers are thin.

Called by: uvicorn (app.main:app)
Depends on: config, logging_config, database, rate_limit, routers/*
"""

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .config import APP_VERSION, settings
from .http_client import close_clients
from .logging_config import redact, setup_logging
from .rate_limit import limiter
from .routers import announcements, auth, files, goals, invitations, requests, scholars, tasks, users
from .schemas.errors import ErrorResponse, ValidationIssue

_STARTED_AT = time.monotonic()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-API-Version": "v1",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if not settings.testing:
        from .database import engine
        from .models import Base

        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("ORM schema sync complete")
    logger.info("Ashinaga API started", environment=settings.environment, version=APP_VERSION)
    yield
    await close_clients()
    logger.info("Ashinaga API stopped")


app = FastAPI(title=settings.app_name, version=APP_VERSION, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age_days * 86400,
    same_site="lax",
    https_only=settings.session_https_only,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag each request with a short ID, log it, and set security headers."""
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id

    # /api/v1/... is served by the unversioned routes
    path = request.scope["path"]
    if path.startswith("/api/v1/"):
        request.scope["path"] = "/api/" + path[len("/api/v1/"):]

    start = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "{} {} -> {} ({:.1f}ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Request-ID"] = request_id
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


# ── Error handlers ───────────────────────────────────────────────────


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = ErrorResponse(
        error=str(exc.detail),
        status_code=exc.status_code,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        ValidationIssue(loc=list(e.get("loc", ())), msg=e.get("msg", ""), type=e.get("type", ""))
        for e in exc.errors()
    ]
    logger.info(
        "Validation failed on {} {}: {} error(s), body={}",
        request.method,
        request.url.path,
        len(errors),
        redact(exc.body),
    )
    body = ErrorResponse(
        error="Validation error",
        status_code=422,
        request_id=_request_id(request),
        detail=errors,
    )
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    body = ErrorResponse(
        error="Internal server error",
        status_code=500,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=500, content=body.model_dump())


# ── Routers ──────────────────────────────────────────────────────────

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(scholars.router)
app.include_router(goals.router)
app.include_router(tasks.router)
app.include_router(requests.router)
app.include_router(files.router)
app.include_router(announcements.router)
app.include_router(invitations.router)


@app.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "uptime": round(time.monotonic() - _STARTED_AT, 1),
        "version": APP_VERSION,
    }
