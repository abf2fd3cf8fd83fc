"""
Short URL API models.

Response field names follow the public camelCase contract.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateShortUrlRequest(BaseModel):
    """Body of POST /shorturls."""

    url: str = Field(description="Absolute URL to shorten")
    validity: Optional[int] = Field(
        default=None,
        description="Validity in days (defaults to the configured value)",
    )
    shortcode: Optional[str] = Field(
        default=None,
        description="Custom shortcode (3-10 alphanumeric chars)",
    )


class CreateShortUrlResponse(BaseModel):
    """Response from POST /shorturls."""

    short_link: str = Field(serialization_alias="shortLink", description="Full short link")
    expiry: datetime = Field(description="Expiry timestamp")

    model_config = ConfigDict(populate_by_name=True)


class ShortUrlStats(BaseModel):
    """Response from GET /shorturls/{code}."""

    original_url: str = Field(serialization_alias="originalUrl", description="Target URL")
    expiry: datetime = Field(description="Expiry timestamp")
    clicks: int = Field(description="Number of redirects served")
    created_at: datetime = Field(serialization_alias="createdAt", description="Creation timestamp")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    error: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
