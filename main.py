# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Membership Service
==================
Club membership lifecycle and dues billing: single-use invitations, the
member status state machine, annual dues cycles, payment reconciliation
and the portal access gate.

Member status state-machine:
    INVITED ─► PENDING_PROFILE ─► PENDING_PAYMENT ─► ACTIVE
    any ─► INACTIVE (deactivation), INACTIVE ─► PENDING_PAYMENT | ACTIVE

Port: 8005
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.controllers import (
    access_controller,
    cycle_controller,
    dues_controller,
    invitation_controller,
    member_controller,
    payment_controller,
    system_controller,
)
from app.core.config import settings
from app.core.database import engine, init_schema
from app.core.errors import MembershipError
from app.core.logging import get_logger
from app.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    if settings.AUTO_INIT_SCHEMA:
        init_schema(engine)
    logger.info("%s v%s starting", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    logger.info("%s shutting down", settings.SERVICE_NAME)


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Membership Service",
    description="Invitations, member lifecycle, dues cycles, payment reconciliation and access gate.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


# ── Exception handlers ────────────────────────────────────────────────────
@app.exception_handler(MembershipError)
async def membership_error_handler(request: Request, exc: MembershipError):
    req_id = getattr(request.state, "request_id", None)
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s %s -> %d %s: %s", request.method, request.url.path,
        exc.status_code, exc.code, exc.message, extra={"request_id": req_id})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message,
                 "retryable": exc.retryable, "request_id": req_id},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


# ── Routers ───────────────────────────────────────────────────────────────
app.include_router(system_controller.router)
app.include_router(invitation_controller.router)
app.include_router(member_controller.router)
app.include_router(cycle_controller.router)
app.include_router(dues_controller.router)
app.include_router(payment_controller.router)
app.include_router(access_controller.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.SERVICE_PORT)
