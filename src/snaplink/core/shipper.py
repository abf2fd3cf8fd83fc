"""
Fire-and-forget log shipping to the remote collector.

Features:
- Validates origin, level and package against the fixed taxonomy
- Attaches a bearer token when one can be obtained
- One delivery attempt per event with a timeout; failures are swallowed
- Caps in-flight deliveries and drops events beyond the cap
"""

import asyncio
import time
from typing import Any, Dict, Optional, Set

import aiohttp
import pydantic
import structlog
from pydantic_core import PydanticSerializationError

from .exceptions import DeliveryError, TelemetryValidationError
from .metrics import MetricsCollector
from .token_manager import TokenManager
from ..config import CollectorSettings
from ..models.log_event import LogEvent, LogLevel, Origin

logger = structlog.get_logger(__name__)


class LogShipper:
    """
    Best-effort client for the log collector.

    ship() never waits for delivery and never raises for network or
    credential problems. Only a malformed event raises, and only to
    the immediate caller.
    """

    def __init__(
        self,
        settings: CollectorSettings,
        token_manager: Optional[TokenManager] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.token_manager = token_manager or TokenManager(
            timeout_seconds=settings.timeout_seconds,
            default_lifetime_seconds=settings.default_token_lifetime_seconds,
            metrics=metrics,
        )
        self.origin = Origin(settings.origin)
        self.session: Optional[aiohttp.ClientSession] = None
        self._in_flight: Set["asyncio.Task[None]"] = set()

        logger.info(
            "Log shipper initialized",
            log_url=settings.log_url,
            enabled=settings.enabled,
            max_in_flight=settings.max_in_flight,
        )

    async def start(self) -> None:
        """Open HTTP sessions for deliveries and token fetches."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.timeout_seconds)
            )
        await self.token_manager.start()

    async def stop(self) -> None:
        """Wait for outstanding deliveries, then close sessions."""
        await self.drain()
        if self.session:
            await self.session.close()
            self.session = None
        await self.token_manager.stop()

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def ship(
        self,
        origin: str,
        severity: str,
        category: str,
        message: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Validate an event and schedule its delivery.

        Returns:
            True if delivery was scheduled, False if the event was dropped

        Raises:
            TelemetryValidationError: unknown origin, level or package
        """
        event = build_event(origin, severity, category, message, attributes)
        try:
            payload = event.to_payload()
        except PydanticSerializationError as e:
            raise TelemetryValidationError(f"Event attributes are not serializable: {e}") from e

        if not self.settings.enabled:
            return False

        if len(self._in_flight) >= self.settings.max_in_flight:
            self._drop("in_flight_cap", event)
            return False

        try:
            task = asyncio.get_running_loop().create_task(self.deliver(payload))
        except RuntimeError:
            self._drop("no_event_loop", event)
            return False

        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return True

    def log(self, level: LogLevel, category: str, message: str, meta: Optional[Dict[str, Any]] = None) -> bool:
        """Ship an event from this service's own origin."""
        return self.ship(self.origin.value, level.value, category, message, meta)

    def debug(self, category: str, message: str, meta: Optional[Dict[str, Any]] = None) -> bool:
        return self.log(LogLevel.DEBUG, category, message, meta)

    def info(self, category: str, message: str, meta: Optional[Dict[str, Any]] = None) -> bool:
        return self.log(LogLevel.INFO, category, message, meta)

    def warn(self, category: str, message: str, meta: Optional[Dict[str, Any]] = None) -> bool:
        return self.log(LogLevel.WARN, category, message, meta)

    def error(self, category: str, message: str, meta: Optional[Dict[str, Any]] = None) -> bool:
        return self.log(LogLevel.ERROR, category, message, meta)

    def fatal(self, category: str, message: str, meta: Optional[Dict[str, Any]] = None) -> bool:
        return self.log(LogLevel.FATAL, category, message, meta)

    async def deliver(self, payload: Dict[str, Any]) -> bool:
        """
        Make one delivery attempt.

        Returns:
            True if the collector accepted the event, False otherwise
        """
        start = time.monotonic()
        try:
            await self._send(payload)
        except Exception as e:
            logger.debug(
                "Log delivery failed",
                error=str(e),
                error_type=type(e).__name__,
                package=payload.get("package"),
            )
            if isinstance(e, DeliveryError) and e.status == 401:
                self.token_manager.invalidate()
            if self.metrics:
                self.metrics.record_shipment("failed", time.monotonic() - start)
            return False

        if self.metrics:
            self.metrics.record_shipment("sent", time.monotonic() - start)
        return True

    async def _send(self, payload: Dict[str, Any]) -> None:
        headers = {"Content-Type": "application/json"}

        token = await self.token_manager.get_token(
            self.settings.auth_url, self.settings.auth_payload()
        )
        if token:
            headers["Authorization"] = f"Bearer {token}"

        if self.session is not None:
            await self._post(self.session, payload, headers)
            return

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.settings.timeout_seconds)
        ) as session:
            await self._post(session, payload, headers)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        payload: Dict[str, Any],
        headers: Dict[str, str],
    ) -> None:
        async with session.post(self.settings.log_url, json=payload, headers=headers) as response:
            if response.status >= 300:
                raise DeliveryError(f"Collector returned {response.status}", status=response.status)

    def _drop(self, reason: str, event: LogEvent) -> None:
        logger.warning(
            "Log event dropped",
            reason=reason,
            in_flight=len(self._in_flight),
            package=event.package,
        )
        if self.metrics:
            self.metrics.record_shipment("dropped")


def build_event(
    origin: str,
    severity: str,
    category: str,
    message: str,
    attributes: Optional[Dict[str, Any]] = None,
) -> LogEvent:
    """
    Build a LogEvent, turning validation failures into TelemetryValidationError.
    """
    try:
        return LogEvent(
            stack=origin,
            level=severity,
            package=category,
            message=message,
            meta=attributes,
        )
    except pydantic.ValidationError as e:
        raise TelemetryValidationError(
            f"Invalid log event ({origin}/{severity}/{category}): {e.errors()[0]['msg']}"
        ) from e
