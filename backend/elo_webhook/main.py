import logging

import sentry_sdk
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import API_PREFIX
from .exceptions import DomainException, ErrorBody, PartialCommitError
from .routers import webhook
from .services.validation import ValidationError
from .utils.sentry import init_sentry

logger = logging.getLogger(__name__)

init_sentry()

# -----------------------------------------------------------------------------
# FastAPI app
# -----------------------------------------------------------------------------
app = FastAPI(
    title="Match Elo Webhook",
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
    openapi_url="/openapi.json",
)

# Rate limiting
app.state.limiter = webhook.limiter
app.add_exception_handler(RateLimitExceeded, webhook.rate_limit_handler)


# -----------------------------------------------------------------------------
# Health checks
# -----------------------------------------------------------------------------
@app.get("/healthz", tags=["health"])  # Unprefixed for reverse proxy / uptime checks
def root_healthz():
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# Error handling
# -----------------------------------------------------------------------------
def _error_response(status_code: int, body: ErrorBody) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def partial_commit_handler(request: Request, exc: PartialCommitError) -> JSONResponse:
    logger.error(
        "Partial commit for match %s: committed=%s failed=%s ratings=%s",
        exc.match_id,
        exc.committed,
        exc.failed,
        exc.ratings,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    sentry_sdk.capture_exception(exc)
    return _error_response(exc.status_code, exc.to_body())


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.title, exc.detail, exc_info=(type(exc), exc, exc.__traceback__))
    else:
        logger.warning("%s: %s", exc.title, exc.detail)
    return _error_response(exc.status_code, exc.to_body())


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Rejected webhook request: %s", exc.detail)
    return _error_response(400, ErrorBody(error=exc.detail, code="validation_error"))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    code = getattr(exc, "code", f"http_{exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorBody(error=detail, code=code).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    return _error_response(
        500, ErrorBody(error="Internal server error", code="internal_server_error")
    )


def register_exception_handlers(target: FastAPI) -> None:
    target.add_exception_handler(PartialCommitError, partial_commit_handler)
    target.add_exception_handler(DomainException, domain_exception_handler)
    target.add_exception_handler(ValidationError, validation_exception_handler)
    target.add_exception_handler(StarletteHTTPException, http_exception_handler)
    target.add_exception_handler(Exception, unhandled_exception_handler)


register_exception_handlers(app)

# -----------------------------------------------------------------------------
# Routers
# -----------------------------------------------------------------------------
api_router = APIRouter(prefix=API_PREFIX, tags=["meta"])


@api_router.get("/healthz", tags=["health"])
def api_healthz():
    return {"status": "ok"}


api_router.include_router(webhook.router)
app.include_router(api_router)
