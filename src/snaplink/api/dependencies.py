"""
Request dependencies resolving the components created in the app lifespan.
"""

from typing import Optional

from fastapi import Request

from ..config import Settings
from ..core.metrics import MetricsCollector
from ..core.shipper import LogShipper
from ..core.store import KeyStore


def get_app_settings(request: Request) -> Settings:
    """Dependency to get the settings the app was created with."""
    return request.app.state.settings


def get_store(request: Request) -> KeyStore:
    """Dependency to get the key store from app state."""
    return request.app.state.store


def get_shipper(request: Request) -> LogShipper:
    """Dependency to get the log shipper from app state."""
    return request.app.state.shipper


def get_metrics(request: Request) -> Optional[MetricsCollector]:
    """Dependency to get the metrics collector from app state (if available)."""
    return getattr(request.app.state, "metrics", None)
