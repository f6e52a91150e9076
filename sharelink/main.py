import asyncio
import contextlib
import logging
import time
import uuid

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from sharelink.core.config import settings
from sharelink.core.errors import AppError
from sharelink.db import base
from sharelink.db.session import engine, get_db

# Import routers
from sharelink.api import admin, auth, files, payments
from sharelink.services.sweeper import expiry_sweep_loop

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Ephemeral file sharing with pre-signed uploads and paid upgrades",
    version=settings.VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = uuid.uuid4().hex[:8]
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "[%s] %s %s -> %d (%.1fms)",
        request_id, request.method, request.url.path, response.status_code, elapsed_ms,
    )
    return response

# ============================================================================
# Error envelope
# ============================================================================

def _error(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message, headers=exc.headers, **exc.extra)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return _error(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Something went wrong")

# ============================================================================
# Routers
# ============================================================================

app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Authentication"])
app.include_router(files.router, prefix=f"{settings.API_PREFIX}/files", tags=["Files"])
app.include_router(payments.router, prefix=f"{settings.API_PREFIX}/payments", tags=["Payments"])
app.include_router(admin.router, prefix=f"{settings.API_PREFIX}/admin", tags=["Admin"])


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}!",
        "version": settings.VERSION,
        "docs": "/docs",
    }


@app.get(f"{settings.API_PREFIX}/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"success": True, "status": "ok", "database": "ok"}

# ============================================================================
# Lifecycle
# ============================================================================

@app.on_event("startup")
async def startup_event():
    base.Base.metadata.create_all(bind=engine)

    app.state.sweep_task = None
    if settings.EXPIRY_SWEEP_INTERVAL_SECONDS > 0:
        app.state.sweep_task = asyncio.create_task(
            expiry_sweep_loop(settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
        )
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "sweep_task", None)
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    logger.info("Shutting down %s", settings.PROJECT_NAME)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sharelink.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info"
    )
