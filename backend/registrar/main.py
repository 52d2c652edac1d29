from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from registrar.api.routes import auth, catalog, health, quarter_packages, schedules, sections
from registrar.core.config import get_settings
from registrar.core.exceptions import (
    AppError,
    AuthenticationError,
    ConcurrentModificationError,
    DuplicateResourceError,
    ImmutableRecordError,
    InvalidIntervalError,
    InvalidTransitionError,
    PackageAlreadyExistsError,
    PackageHasDependenciesError,
    PackageNotFoundError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ScheduleConflictError,
    SectionHasDependenciesError,
    TeacherLoadLimitError,
    UnauthorizedTransitionError,
    ValidationError,
)
from registrar.core.middleware import (
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from registrar.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()
logger = logging.getLogger(__name__)

# Error kind -> HTTP status. Checked in order, so subclasses come before their bases.
ERROR_STATUS: tuple[tuple[type[AppError], int], ...] = (
    (ScheduleConflictError, 409),
    (ConcurrentModificationError, 409),
    (InvalidTransitionError, 409),
    (PackageAlreadyExistsError, 409),
    (PackageHasDependenciesError, 409),
    (SectionHasDependenciesError, 409),
    (DuplicateResourceError, 409),
    (ImmutableRecordError, 409),
    (AuthenticationError, 401),
    (UnauthorizedTransitionError, 403),
    (PermissionDeniedError, 403),
    (PackageNotFoundError, 404),
    (ResourceNotFoundError, 404),
    (InvalidIntervalError, 422),
    (TeacherLoadLimitError, 422),
    (ValidationError, 422),
)


def status_for(exc: AppError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    ensure_runtime_schema_compatibility()
    yield


async def app_error_handler(request: Request, exc: AppError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "message": exc.message, "details": exc.details},
        headers=headers,
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(catalog.router, prefix=settings.api_prefix, tags=["catalog"])
app.include_router(sections.router, prefix=f"{settings.api_prefix}/sections", tags=["sections"])
app.include_router(schedules.router, prefix=f"{settings.api_prefix}/schedules", tags=["schedules"])
app.include_router(
    quarter_packages.router,
    prefix=f"{settings.api_prefix}/quarter-packages",
    tags=["quarter-packages"],
)
