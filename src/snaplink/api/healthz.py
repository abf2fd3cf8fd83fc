"""
Health check endpoints.

- /health: service status with store size
- /healthz: liveness probe (always 200 if service alive)
"""

from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends

from ..core.shipper import LogShipper
from ..core.store import KeyStore
from .dependencies import get_shipper, get_store

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Service health",
    description="""
    Reports that the API is up, with the number of stored short URLs
    and the number of log deliveries in flight.
    """,
)
async def health_check(
    store: KeyStore = Depends(get_store),
    shipper: LogShipper = Depends(get_shipper),
) -> Dict[str, Any]:
    """
    Health check with basic component state.
    """
    shipper.info("route", "Health check requested")

    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "snaplink",
        "version": "0.1.0",
        "urls": len(store),
        "log_deliveries_in_flight": shipper.in_flight,
    }


@router.get(
    "/healthz",
    status_code=200,
    summary="Liveness probe",
)
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness probe - always returns 200 if service is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "snaplink",
        "version": "0.1.0",
    }
