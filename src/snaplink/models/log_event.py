"""
Log event data models and taxonomy.

- Origins (stack): backend, frontend
- Levels: debug < info < warn < error < fatal
- Packages (categories): shared list plus an origin-specific list
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Origin(str, Enum):
    """Deployment context an event comes from."""

    BACKEND = "backend"
    FRONTEND = "frontend"


class LogLevel(str, Enum):
    """Allowed log levels, declared in severity order."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def rank(self) -> int:
        """Position in severity order, debug is 0."""
        return list(LogLevel).index(self)


SHARED_PACKAGES: FrozenSet[str] = frozenset({"auth", "config", "middleware", "utils"})

ORIGIN_PACKAGES: Dict[Origin, FrozenSet[str]] = {
    Origin.BACKEND: frozenset({
        "cache", "controller", "cron_job", "db", "domain",
        "handler", "repository", "route", "service",
    }),
    Origin.FRONTEND: frozenset({"api", "component", "hook", "page", "state", "style"}),
}


def is_allowed_package(package: str, origin: Origin) -> bool:
    """True if the package may be used by events from this origin."""
    return package in SHARED_PACKAGES or package in ORIGIN_PACKAGES[origin]


class LogEvent(BaseModel):
    """
    A single event as posted to the collector.

    Field names match the collector's wire format.
    """

    stack: Origin = Field(description="Origin of the event (backend, frontend)")
    level: LogLevel = Field(description="Severity (debug, info, warn, error, fatal)")
    package: str = Field(description="Category of the emitting subsystem")
    message: str = Field(description="Log message content")
    meta: Optional[Dict[str, Any]] = Field(default=None, description="Free-form attributes")

    @model_validator(mode="after")
    def validate_package(self) -> "LogEvent":
        """Package must be shared or belong to the event's origin."""
        if not is_allowed_package(self.package, self.stack):
            raise ValueError(f"Package '{self.package}' is not allowed for stack '{self.stack.value}'")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the collector; meta is omitted when absent."""
        payload = self.model_dump(mode="json")
        if payload["meta"] is None:
            del payload["meta"]
        return payload

    model_config = ConfigDict(frozen=True)
