"""
Short URL API endpoints.

- POST /shorturls: create a short URL
- GET /shorturls/{code}: statistics for a short URL
- GET /{code}: redirect to the target and count the click
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse

from ..config import Settings
from ..core.exceptions import ExpiredError, NotFoundError, SnapLinkException
from ..core.metrics import MetricsCollector
from ..core.shipper import LogShipper
from ..core.store import KeyStore, Record
from ..models.short_url import (
    CreateShortUrlRequest,
    CreateShortUrlResponse,
    ErrorResponse,
    ShortUrlStats,
)
from .dependencies import get_app_settings, get_metrics, get_shipper, get_store

logger = structlog.get_logger(__name__)

router = APIRouter()
redirect_router = APIRouter()


def resolve_live(code: str, store: KeyStore, metrics: Optional[MetricsCollector]) -> Record:
    """
    Resolve a shortcode that has not expired, counting one lookup outcome.

    Raises:
        NotFoundError: unknown shortcode
        ExpiredError: shortcode exists but has expired
    """
    try:
        record = store.resolve(code)
    except NotFoundError:
        if metrics:
            metrics.record_lookup("not_found")
        raise

    if store.is_expired(record):
        if metrics:
            metrics.record_lookup("expired")
        raise ExpiredError(code)

    if metrics:
        metrics.record_lookup("found")
    return record


@router.post(
    "/shorturls",
    response_model=CreateShortUrlResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL, shortcode or validity"},
        409: {"model": ErrorResponse, "description": "Shortcode already exists"},
    },
    summary="Create a short URL",
)
async def create_short_url(
    body: CreateShortUrlRequest,
    store: KeyStore = Depends(get_store),
    shipper: LogShipper = Depends(get_shipper),
    settings: Settings = Depends(get_app_settings),
) -> CreateShortUrlResponse:
    """
    Create a short URL, generating a shortcode when none is given.
    """
    try:
        record = await store.reserve(body.url, key=body.shortcode or None, validity_days=body.validity)
    except SnapLinkException as e:
        shipper.error("route", str(e), e.details)
        raise

    short_link = f"{settings.public_base_url.rstrip('/')}/{record.key}"
    shipper.info("route", "Short URL created successfully", {
        "shortcode": record.key,
        "originalUrl": record.target,
    })

    return CreateShortUrlResponse(short_link=short_link, expiry=record.expires_at)


@router.get(
    "/shorturls/{code}",
    response_model=ShortUrlStats,
    responses={
        404: {"model": ErrorResponse, "description": "Short URL not found"},
        410: {"model": ErrorResponse, "description": "Short URL has expired"},
    },
    summary="Short URL statistics",
)
async def get_short_url_stats(
    code: str,
    store: KeyStore = Depends(get_store),
    shipper: LogShipper = Depends(get_shipper),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> ShortUrlStats:
    """
    Return target, expiry, clicks and creation time for a live short URL.
    """
    try:
        record = resolve_live(code, store, metrics)
    except SnapLinkException as e:
        shipper.error("route", str(e), {"code": code})
        raise

    shipper.info("route", "Short URL stats retrieved", {"code": code})

    return ShortUrlStats(
        original_url=record.target,
        expiry=record.expires_at,
        clicks=record.clicks,
        created_at=record.created_at,
    )


@redirect_router.get(
    "/{code}",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short URL not found"},
        410: {"model": ErrorResponse, "description": "Short URL has expired"},
    },
    summary="Redirect to the target URL",
)
async def redirect_short_url(
    code: str,
    store: KeyStore = Depends(get_store),
    shipper: LogShipper = Depends(get_shipper),
    metrics: Optional[MetricsCollector] = Depends(get_metrics),
) -> Response:
    """
    Redirect to the target URL and count the click.
    """
    # Browsers ask for this on every page
    if code == "favicon.ico":
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    shipper.info("route", "Redirect requested", {"code": code})

    try:
        record = resolve_live(code, store, metrics)
        record = await store.record_hit(code)
    except SnapLinkException as e:
        shipper.error("route", f"{e} for redirect", {"code": code})
        raise

    shipper.info("route", "Redirecting to original URL", {
        "code": code,
        "originalUrl": record.target,
        "newClickCount": record.clicks,
    })
    logger.debug("Redirecting", shortcode=code, clicks=record.clicks)

    return RedirectResponse(record.target, status_code=status.HTTP_302_FOUND)
