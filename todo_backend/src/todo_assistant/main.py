import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import ConfigError, StoreError, TodoValidationError, UpstreamError
from .logging_config import setup_logging
from .repositories import get_repository
from .routers import chat as chat_router
from .routers import todos as todos_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "CRUD operations for Todo items and the categories they belong to.",
    },
    {
        "name": "chat",
        "description": "Natural-language todo management backed by a language model.",
    },
]

APOLOGY_MESSAGE = "Sorry, I encountered an error. Please try again."

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_format)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_repository().ensure_default_categories()
    logger.info("Todo assistant started", backend=_settings.persistence_backend)
    yield


app = FastAPI(
    title="Todo Assistant Backend",
    description="Todo list API with a chat assistant that turns free text into todo actions.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_request_id(request: Request, call_next):
    """Bind a per-request id into the structlog context."""
    structlog.contextvars.bind_contextvars(request_id=request.headers.get("x-request-id") or uuid.uuid4().hex)
    try:
        return await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("request_id")


# Global exception handlers for consistent JSON on validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(TodoValidationError)
async def todo_validation_exception_handler(request: Request, exc: TodoValidationError) -> JSONResponse:
    """Field checks that only the core can make use the same envelope as request validation."""
    return JSONResponse(status_code=422, content={"error": exc.kind, "message": str(exc)})


@app.exception_handler(ConfigError)
async def config_exception_handler(request: Request, exc: ConfigError) -> JSONResponse:
    """Missing configuration is reported to the caller with an instructive message."""
    logger.warning("Configuration error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=400, content={"error": exc.kind, "message": str(exc)})


@app.exception_handler(StoreError)
@app.exception_handler(UpstreamError)
async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Store and model failures become a generic 500; the details only go to the log.
    """
    logger.error("Request failed", path=request.url.path, error_kind=exc.kind, error=str(exc))
    return JSONResponse(status_code=500, content={"error": exc.kind, "message": APOLOGY_MESSAGE})


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(todos_router.router)
app.include_router(chat_router.router)
