"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.jobs.scheduler import register_jobs, scheduler
from app.routers import (
    auth,
    ballot,
    candidates,
    dashboard,
    departments,
    elections,
    mail,
    positions,
    voters,
)
from app.utils.errors import AppError, InvalidInputError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run housekeeping jobs for the lifetime of the app."""
    if not settings.email_configured:
        logger.warning("EMAIL_USER/EMAIL_PASS not set; credential and OTP emails will fail")
    if settings.enable_scheduler:
        register_jobs()
        scheduler.start()
        logger.info("Scheduler started with jobs %s", [job.id for job in scheduler.get_jobs()])
    yield
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


app = FastAPI(
    title=settings.app_name,
    description="University online voting API",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_timing_middleware(request: Request, call_next):
    """Stamp each response with its processing time; log the slow ones."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"

    threshold_ms = settings.slow_request_log_threshold_ms
    if 0 < threshold_ms <= elapsed_ms:
        logger.warning(
            "Slow request %s %s %.1fms status=%s",
            request.method,
            request.url.path,
            elapsed_ms,
            response.status_code,
        )

    return response


def validation_message(errors: list[dict]) -> str:
    """First validation problem as ``"<field>: <reason>"``."""
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    reason = first.get("msg", "Invalid value")
    return f"{'.'.join(location)}: {reason}" if location else reason


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    """Render domain exceptions as ``{"error", "code"}``."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    _: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed bodies and parameters as 400 INVALID_INPUT."""
    api_error = InvalidInputError(validation_message(exc.errors()))
    return JSONResponse(status_code=api_error.status_code, content=api_error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with a generic 500."""
    logger.exception(
        "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(departments.router, prefix="/api/departments", tags=["departments"])
app.include_router(elections.router, prefix="/api/elections", tags=["elections"])
app.include_router(positions.router, prefix="/api/positions", tags=["positions"])
app.include_router(candidates.router, prefix="/api/candidates", tags=["candidates"])
# Voter-facing paths must be registered ahead of the admin /{voter_id} routes.
app.include_router(ballot.router, prefix="/api/voters", tags=["ballot"])
app.include_router(voters.router, prefix="/api/voters", tags=["voters"])
app.include_router(mail.router, prefix="/api/mail", tags=["mail"])


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe for deploys and uptime checks."""
    return {"status": "ok", "version": settings.app_version}
