# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI application.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS and request-logging middleware.
* Translate domain errors (core.errors) and storage errors into JSON.
* Mount the feature routers (auth, admin, menu, orders).
* Expose a /health endpoint for container liveness checks.
"""

import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from auth.router import router as auth_router
from admin.router import router as admin_router
from menu.router import router as menu_router
from orders.router import router as orders_router
from core.config import settings
from core.errors import AppError
from core.logger import logger
from core.password_policy import get_password_policy

app = FastAPI(title="Lunch Desk", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
# Credentials are allowed because the session travels in a cookie.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Request bodies (login payload, password fields) are never echoed.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)

# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(AppError)
async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code in (401, 403):
        logger.info("%s %s denied: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def _storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Full detail goes to the log only; the client gets a generic message
    logger.exception("Storage error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(menu_router)
app.include_router(orders_router)

# ---------------------------------------------------------------------------
# Lifecycle & health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    # Build the password policy now so a bad configuration fails at boot
    policy = get_password_policy()
    logger.info(
        "Lunch Desk starting up (password min_length=%d, classes=%d of %s, expiry=%dd)",
        policy.min_length,
        policy.required_class_count,
        ",".join(policy.character_classes),
        policy.default_expiry_days,
    )


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("Lunch Desk shutting down")


@app.get("/health")
def health():
    return {"status": "ok"}

