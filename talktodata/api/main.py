"""
TalkToData FastAPI Application.

This module wires the REST API: CORS, rate limiting, error handling and
the routers. All business logic is delegated to the orchestrator; no SQL
or LLM logic here.

Endpoints:
- /api/connect, /api/demo-connect, /api/session  - connection lifecycle
- /api/schema                                      - schema of the connected DB
- /api/generate, /api/execute, /api/explain,
  /api/fix, /api/chart-suggest, /api/export        - query features
- /health                                          - liveness
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from configs import ALLOWED_ORIGINS, LLM_MODEL, ConfigurationError, validate_configuration

from .. import __version__
from ..adapters import list_adapters
from ..errors import AppError, ErrorCode, RateLimitedError, get_default_message
from ..utils import RateLimiter, get_client_id
from .deps import logger, status_for
from .routers import connection, query, schema, system


# ============================================================
# APP LIFECYCLE
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        validate_configuration()
    except ConfigurationError as e:
        # Non-fatal: LLM and session features fail per request instead
        logger.warning("Configuration incomplete: %s", e)
    logger.info(
        "TalkToData API %s started. LLM model: %s. Databases: %s",
        __version__, LLM_MODEL, ", ".join(list_adapters()),
    )
    yield
    logger.info("TalkToData API shutting down.")


# ============================================================
# FASTAPI APP
# ============================================================

app = FastAPI(
    title="TalkToData API",
    description="Natural language to SQL over PostgreSQL, MySQL, SQLite, SQL Server and MongoDB",
    version=__version__,
    lifespan=lifespan
)

# Per-process limiter; replace app.state.rate_limiter to change the backend
app.state.rate_limiter = RateLimiter()

# CORS for frontend - configurable via environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS or ["*"],
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# MIDDLEWARE
# ============================================================

@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Count /api/* requests per client; 429 once the window is used up."""
    if not request.url.path.startswith("/api/"):
        return await call_next(request)

    limiter: RateLimiter = request.app.state.rate_limiter
    client_id = get_client_id(request.headers, request.client.host if request.client else None)
    decision = limiter.check(client_id)

    if not decision.allowed:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "success": False,
                "error": RateLimitedError(get_default_message(ErrorCode.RATE_LIMITED)).to_dict(),
            },
            headers=decision.headers(),
        )

    response = await call_next(request)
    response.headers.update(decision.headers())
    return response


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    status_code = status_for(exc.code)
    if status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code.value)
    if exc.original_error is not None:
        logger.debug("Underlying error: %r", exc.original_error)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.to_dict()},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", get_default_message(ErrorCode.VALIDATION_ERROR))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": {
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": f"{field}: {message}" if field else message,
            },
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Log the full error internally, return sanitized message to client
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {
                "code": ErrorCode.UNKNOWN.value,
                "message": get_default_message(ErrorCode.UNKNOWN),
            },
        },
    )


# ============================================================
# ROUTERS
# ============================================================

app.include_router(system.router)
app.include_router(connection.router)
app.include_router(schema.router)
app.include_router(query.router)


# ============================================================
# RUN DIRECTLY (for development)
# ============================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
