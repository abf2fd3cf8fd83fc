"""
Expiring in-memory store of short URL records.

- One record per shortcode; expired records keep their key
- Generated shortcodes are retried until unused
- Reservation and click counting are serialized by a store-wide lock
"""

import asyncio
import dataclasses
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog

from ..config import StoreSettings
from ..models.log_event import LogLevel
from .exceptions import (
    InvalidFormatError,
    InvalidTargetError,
    InvalidValidityError,
    KeyConflictError,
    NotFoundError,
    TelemetryValidationError,
)
from .metrics import MetricsCollector
from .shipper import LogShipper
from .shortcode import generate_shortcode, is_valid_shortcode, is_valid_url

logger = structlog.get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Record:
    """A shortcode mapped to its target URL."""
    key: str
    target: str
    created_at: datetime
    expires_at: datetime
    clicks: int = 0


class KeyStore:
    """
    Process-wide shortcode store.

    Records are immutable; a hit replaces the stored record with a copy
    whose click count is one higher.
    """

    def __init__(
        self,
        settings: Optional[StoreSettings] = None,
        shipper: Optional[LogShipper] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], datetime] = utcnow,
        generator: Callable[[int], str] = generate_shortcode,
    ) -> None:
        self.settings = settings or StoreSettings()
        self.shipper = shipper
        self.metrics = metrics
        self.clock = clock
        self.generator = generator
        self._records: Dict[str, Record] = {}
        self._lock = asyncio.Lock()

        logger.info(
            "Key store initialized",
            default_validity_days=self.settings.default_validity_days,
            shortcode_length=self.settings.shortcode_length,
        )

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    async def reserve(
        self,
        target: str,
        key: Optional[str] = None,
        validity_days: Optional[int] = None,
    ) -> Record:
        """
        Create a record for target under key, or under a generated key.

        Raises:
            InvalidTargetError: target is not an absolute URL
            InvalidValidityError: validity_days is not a positive integer
            InvalidFormatError: key does not match the shortcode format
            KeyConflictError: key is already taken, even if expired
        """
        if not is_valid_url(target):
            self._emit(LogLevel.WARN, "URL validation failed", {"url": target})
            raise InvalidTargetError(target)

        if validity_days is None:
            validity_days = self.settings.default_validity_days
        if isinstance(validity_days, bool) or not isinstance(validity_days, int) or validity_days <= 0:
            raise InvalidValidityError(validity_days)

        if key is not None and not is_valid_shortcode(key):
            self._emit(LogLevel.WARN, "Shortcode validation failed", {
                "shortcode": key,
                "reason": "Must be 3-10 alphanumeric characters",
            })
            raise InvalidFormatError(key)

        async with self._lock:
            if key is not None:
                if key in self._records:
                    self._emit(LogLevel.WARN, "Shortcode already exists", {"shortcode": key})
                    raise KeyConflictError(key)
                final_key = key
            else:
                final_key = self._generate_unused_key()

            created_at = self.clock()
            record = Record(
                key=final_key,
                target=target,
                created_at=created_at,
                expires_at=created_at + timedelta(days=validity_days),
            )
            self._records[final_key] = record

        if self.metrics:
            self.metrics.record_link_created(custom=key is not None)

        logger.info(
            "Short URL created",
            shortcode=record.key,
            expires_at=record.expires_at.isoformat(),
            total_urls=len(self._records),
        )
        self._emit(LogLevel.INFO, "Short URL created in store", {
            "shortcode": record.key,
            "originalUrl": record.target,
            "expiry": record.expires_at.isoformat(),
            "totalUrls": len(self._records),
        })
        return record

    def _generate_unused_key(self) -> str:
        """Draw candidates until one is free. Caller holds the lock."""
        attempts = 0
        while True:
            candidate = self.generator(self.settings.shortcode_length)
            attempts += 1
            if candidate not in self._records:
                if attempts > 1:
                    logger.debug("Shortcode generated after collisions", attempts=attempts)
                return candidate

            if self.metrics:
                self.metrics.record_collision()
            if attempts % self.settings.collision_warning_threshold == 0:
                logger.warning(
                    "Repeated shortcode collisions, key space may be nearly exhausted",
                    attempts=attempts,
                    total_urls=len(self._records),
                    shortcode_length=self.settings.shortcode_length,
                )
                self._emit(LogLevel.WARN, "Repeated shortcode collisions", {
                    "attempts": attempts,
                    "totalUrls": len(self._records),
                })

    def resolve(self, key: str) -> Record:
        """
        Look up a record without touching it.

        Raises:
            NotFoundError: key was never reserved
        """
        record = self._records.get(key)
        if record is None:
            self._emit(LogLevel.WARN, "Short URL not found in store", {"shortcode": key})
            raise NotFoundError(key)

        self._emit(LogLevel.DEBUG, "Short URL found in store", {
            "shortcode": key,
            "originalUrl": record.target,
            "clicks": record.clicks,
        })
        return record

    def is_expired(self, record: Record) -> bool:
        """True once the clock is past the record's expiry."""
        expired = self.clock() > record.expires_at
        if expired:
            self._emit(LogLevel.WARN, "URL access attempted on expired URL", {
                "shortcode": record.key,
                "expiry": record.expires_at.isoformat(),
                "originalUrl": record.target,
            })
        return expired

    async def record_hit(self, key: str) -> Record:
        """
        Add one click to a record and return the updated record.

        Expired records still count hits; callers check expiry first.

        Raises:
            NotFoundError: key was never reserved
        """
        async with self._lock:
            record = self._records.get(key)
            if record is None:
                self._emit(LogLevel.WARN, "Attempted to increment clicks for non-existent URL", {
                    "shortcode": key,
                })
                raise NotFoundError(key)

            record = dataclasses.replace(record, clicks=record.clicks + 1)
            self._records[key] = record

        if self.metrics:
            self.metrics.record_click()
        self._emit(LogLevel.INFO, "Click count incremented", {
            "shortcode": key,
            "newClickCount": record.clicks,
            "originalUrl": record.target,
        })
        return record

    def records(self) -> List[Record]:
        """Snapshot of every record, expired ones included."""
        snapshot = list(self._records.values())
        self._emit(LogLevel.DEBUG, "Retrieved all URL statistics", {
            "totalUrls": len(snapshot),
            "totalClicks": sum(r.clicks for r in snapshot),
        })
        return snapshot

    def _emit(self, level: LogLevel, message: str, meta: Dict[str, Any]) -> None:
        if self.shipper is None:
            return
        # Called after state changes, so a rejected event is only logged
        try:
            self.shipper.log(level, "db", message, meta)
        except TelemetryValidationError as e:
            logger.warning("Store event rejected by shipper", event_message=message, error=str(e))
