"""
Pydantic data models package.

Contains data validation models for:
- Short URL API requests and responses
- Log events shipped to the collector
"""

from .log_event import LogEvent, LogLevel, Origin
from .short_url import CreateShortUrlRequest, CreateShortUrlResponse, ErrorResponse, ShortUrlStats

__all__ = [
    # Short URL models
    "CreateShortUrlRequest",
    "CreateShortUrlResponse",
    "ShortUrlStats",
    "ErrorResponse",

    # Log event models
    "LogEvent",
    "LogLevel",
    "Origin",
]
