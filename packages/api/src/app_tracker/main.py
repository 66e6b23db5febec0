# This project was developed with assistance from AI tools.
"""ASGI app: routers, CORS, Problem Details error handlers and the SQLAdmin mount."""

import logging
import uuid
from contextlib import asynccontextmanager

from db import get_db_service
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .admin import setup_admin
from .core.config import settings
from .core.logging import configure_logging
from .routes import (
    admin,
    applications,
    comments,
    documents,
    health,
    notifications,
    profile,
)
from .schemas.error import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Configure logging and the storage client; dispose the engine on shutdown."""
    configure_logging(settings.LOG_LEVEL)
    from .services.realtime import get_notification_hub
    from .services.storage import init_storage_service

    init_storage_service(settings)
    get_notification_hub()
    if settings.AUTH_DISABLED:
        logger.warning("AUTH_DISABLED=true -- every request runs as the dev admin")
    logger.info("%s %s started", settings.APP_NAME, __version__)
    yield
    await get_db_service().close()


app = FastAPI(
    title="Application Tracker API",
    description="Role-based application submission, review and notification service",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _build_error(status_code: int, detail: str, request: Request) -> ErrorResponse:
    return ErrorResponse(
        type="about:blank",
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request.headers.get("x-request-id", str(uuid.uuid4())),
        instance=request.url.path,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    body = _build_error(exc.status_code, str(exc.detail), request)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flatten request validation errors into a single readable detail line."""
    detail = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    body = _build_error(422, detail, request)
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Anything unmapped becomes a 500 with the traceback kept server-side."""
    body = _build_error(500, "An unexpected error occurred.", request)
    logger.exception("Unhandled exception (request_id=%s)", body.request_id)
    return JSONResponse(status_code=500, content=body.model_dump())


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(profile.router, prefix="/api/profile", tags=["profile"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(comments.router, prefix="/api/applications", tags=["comments"])
app.include_router(documents.router, prefix="/api", tags=["documents"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

setup_admin(app)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "Welcome to the Application Tracker API"}
