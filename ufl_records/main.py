import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ufl_records.cache import close_redis, get_snapshot_cache
from ufl_records.db.connection import (
    create_tables,
    dispose_engine,
    get_engine,
    get_session_factory,
)
from ufl_records.db.repositories import SQLAlchemyCanonicalStore
from ufl_records.schemas.error import ErrorType, ValidationErrorDetail
from ufl_records.services.records_service import CommandRejectedError, RecordsService
from ufl_records.services.sync_coordinator import SyncCoordinator
from ufl_records.settings import LOG_FORMAT, AppSettings, get_settings

from .api import champions, fighters, fights, rankings, sync
from .utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    classify_rejection,
)
from .utils.request_context import get_request_id, set_request_id

logging.basicConfig(level=get_settings().log_level_numeric, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def _validate_environment(active_settings: AppSettings | None = None) -> None:
    """Log a warning block for unset optional configuration."""
    warnings = (active_settings or get_settings()).optional_config_warnings()

    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning("  • %s", warning)
        logger.warning("=" * 60)


def validate_environment() -> None:
    """Public wrapper so command-line tools report the same configuration warnings."""
    _validate_environment()


def _sanitize_database_url(url: str) -> str:
    """Hide the password component of ``url`` for log output."""
    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" in rest:
        auth, host_db = rest.split("@", 1)
        if ":" in auth:
            user, _ = auth.split(":", 1)
            return f"{scheme}://{user}:***@{host_db}"
        return f"{scheme}://{auth}@{host_db}"
    return url


async def build_records_service() -> RecordsService:
    """Wire the canonical store, snapshot cache and coordinator for this process."""
    settings = get_settings()
    engine = get_engine()
    if settings.database_type == "sqlite":
        await create_tables(engine)

    store = SQLAlchemyCanonicalStore(get_session_factory())
    cache = await get_snapshot_cache()
    return RecordsService(SyncCoordinator(store, cache))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the working set on startup and release connections on shutdown."""
    _validate_environment()

    settings = get_settings()
    logger.info("=" * 60)
    logger.info("UFL Records API - Canonical Store Preflight")
    logger.info("=" * 60)
    logger.info("Database Type: %s", settings.database_type.upper())
    logger.info("Database URL: %s", _sanitize_database_url(settings.resolved_database_url))
    logger.info("=" * 60)

    service = await build_records_service()
    await service.coordinator.load()
    app.state.records_service = service

    yield

    logger.info("Shutting down UFL Records API")
    await close_redis()
    await dispose_engine()


app = FastAPI(
    title="UFL Records API",
    version="0.1.0",
    description="Fighter records, fight ledger, champions and rankings for UFL divisions.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    ports = list(range(3000, 3011)) + [5173]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


allow_origins = _combine_origins(_default_origins(), get_settings().cors_allow_origins)
logger.info("Configured CORS allow_origins: %s", ", ".join(allow_origins))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    set_request_id(request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def _validation_details(
    exc: RequestValidationError | ValidationError,
) -> list[ValidationErrorDetail]:
    return [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = _validation_details(exc)

    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised while building records."""
    errors = _validation_details(exc)

    logger.warning(
        "Pydantic validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Data validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


@app.exception_handler(CommandRejectedError)
async def command_rejected_exception_handler(request: Request, exc: CommandRejectedError):
    """Turn a rejected command into a structured 4xx payload."""
    error_type, status_code = classify_rejection(exc)

    logger.info(
        "Command rejected for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        exc,
    )

    error_response = build_error_response(
        error_type=error_type,
        message="Command rejected",
        detail=str(exc),
        status_code=status_code,
        path=str(request.url.path),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )

    error_response = build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        detail=f"An unexpected error occurred: {type(exc).__name__}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json"),
    )


@app.get("/health", tags=["system"])
async def healthcheck(request: Request) -> dict[str, str]:
    """Readiness probe reporting where the working set was last loaded from."""
    service: RecordsService | None = getattr(request.app.state, "records_service", None)
    if service is None or service.coordinator.last_source is None:
        return {"status": "starting", "source": "none"}
    return {"status": "ok", "source": service.coordinator.last_source.value}


app.include_router(fighters.router, prefix="/fighters", tags=["fighters"])
app.include_router(fights.router, prefix="/fights", tags=["fights"])
app.include_router(champions.router, prefix="/champions", tags=["champions"])
app.include_router(rankings.router, prefix="/rankings", tags=["rankings"])
app.include_router(sync.router, prefix="/sync", tags=["sync"])
