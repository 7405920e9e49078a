import logging
import os
import secrets
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from ..config import SECRET_HEADER, Settings, load_settings
from ..exceptions import AuthError
from ..repositories import RecordRepository, create_repository
from ..schemas import MessageOut, RatingChangeOut, RatingUpdatedOut
from ..services.ingress import MatchReference, decode_body, parse_payload, parse_query
from ..services.processor import MatchProcessor, NoOpOutcome

logger = logging.getLogger(__name__)


def _get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        if parts:
            return parts[-1]
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else ""


limiter = Limiter(key_func=_get_client_ip)
router = APIRouter(tags=["elo"])


def webhook_rate_limit() -> str:
    if (os.getenv("DISABLE_WEBHOOK_RATE_LIMITS") or "").lower() == "true":
        return "1000/second"
    return os.getenv("ELO_WEBHOOK_RATE_LIMIT") or "60/minute"


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    detail = exc.detail if isinstance(exc.detail, str) else ""
    if detail:
        message = f"rate limit exceeded: {detail}"
    else:
        message = "rate limit exceeded: please wait before sending another event."
    return JSONResponse(
        status_code=429,
        content={"error": message, "code": "rate_limit_exceeded"},
    )


def get_settings() -> Settings:
    """Load configuration per request so a missing variable fails the request."""
    return load_settings()


def verify_secret(request: Request, settings: Settings = Depends(get_settings)) -> None:
    expected = settings.webhook_secret
    if not expected:
        return
    incoming = request.headers.get(SECRET_HEADER) or ""
    if not secrets.compare_digest(incoming.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Unauthorized request: wrong %s", SECRET_HEADER)
        raise AuthError()


async def get_repository(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[RecordRepository]:
    repository = create_repository(settings)
    try:
        yield repository
    finally:
        await repository.aclose()


async def _process(
    ref: MatchReference, settings: Settings, repository: RecordRepository
) -> JSONResponse:
    logger.info("Processing match %s (payload shape: %s)", ref.match_id, ref.shape)
    processor = MatchProcessor(repository, settings.statuses)
    outcome = await processor.process(ref.match_id)

    if isinstance(outcome, NoOpOutcome):
        body = MessageOut(
            message="Match not open, nothing to do",
            page_id=outcome.match_id,
            status=outcome.eligibility.status_name,
        )
        return JSONResponse(
            status_code=200, content=body.model_dump(by_alias=True, exclude_none=True)
        )

    body = RatingUpdatedOut(
        page_id=outcome.match_id,
        player_a=RatingChangeOut(old=outcome.player_a.old, new=outcome.player_a.new),
        player_b=RatingChangeOut(old=outcome.player_b.old, new=outcome.player_b.new),
    )
    return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))


@router.post("/elo", dependencies=[Depends(verify_secret)])
@limiter.limit(webhook_rate_limit)
async def elo_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    repository: RecordRepository = Depends(get_repository),
):
    payload = decode_body(await request.body())
    ref = parse_payload(payload)
    return await _process(ref, settings, repository)


@router.get("/elo", dependencies=[Depends(verify_secret)])
@limiter.limit(webhook_rate_limit)
async def elo_manual_trigger(
    request: Request,
    settings: Settings = Depends(get_settings),
    repository: RecordRepository = Depends(get_repository),
):
    ref = parse_query(request.query_params)
    return await _process(ref, settings, repository)
