"""
Prometheus metrics endpoint.

Exposes metrics in Prometheus text format for scraping.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..core.metrics import MetricsCollector
from .dependencies import get_metrics

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="""
    Prometheus metrics endpoint in standard text format.

    **Key Metrics:**
    - snaplink_links_created_total{custom} - Short URLs created
    - snaplink_link_lookups_total{outcome} - Lookups by outcome
    - snaplink_link_clicks_total - Redirects served
    - snaplink_log_shipments_total{outcome} - Log events sent, failed, dropped
    - snaplink_token_fetches_total{outcome} - Collector token fetches
    """,
)
async def get_metrics_endpoint(
    metrics_collector: Optional[MetricsCollector] = Depends(get_metrics),
) -> Response:
    """
    Returns metrics in Prometheus text format for scraping.
    """
    if not metrics_collector:
        logger.warning("Metrics collector not initialized")
        return Response(
            content="# Metrics collector not initialized\n",
            media_type=CONTENT_TYPE_LATEST,
        )

    metrics_data = generate_latest(metrics_collector.registry)
    logger.debug("Metrics scraped successfully", size_bytes=len(metrics_data))

    return Response(
        content=metrics_data,
        media_type=CONTENT_TYPE_LATEST,
    )
