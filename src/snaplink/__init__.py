"""
SnapLink - URL shortener with expiring links and click tracking

A FastAPI service that maps short codes to target URLs, counts clicks,
and ships structured log events to a remote collector on a best-effort basis.
"""

__version__ = "0.1.0"

from .main import app

__all__ = ["app"]
