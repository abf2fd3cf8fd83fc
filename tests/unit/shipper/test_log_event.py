"""
Tests for the log event taxonomy and model.
"""

import pydantic
import pytest

from snaplink.models.log_event import (
    ORIGIN_PACKAGES,
    SHARED_PACKAGES,
    LogEvent,
    LogLevel,
    Origin,
    is_allowed_package,
)


class TestTaxonomy:
    """The allow-lists are a fixed contract with the collector."""

    def test_shared_packages(self) -> None:
        assert SHARED_PACKAGES == {"auth", "config", "middleware", "utils"}

    def test_backend_packages(self) -> None:
        assert ORIGIN_PACKAGES[Origin.BACKEND] == {
            "cache", "controller", "cron_job", "db", "domain",
            "handler", "repository", "route", "service",
        }

    def test_frontend_packages(self) -> None:
        assert ORIGIN_PACKAGES[Origin.FRONTEND] == {"api", "component", "hook", "page", "state", "style"}

    def test_levels_in_severity_order(self) -> None:
        assert [level.value for level in LogLevel] == ["debug", "info", "warn", "error", "fatal"]
        assert [level.rank for level in LogLevel] == [0, 1, 2, 3, 4]

    @pytest.mark.parametrize(
        "package,origin,allowed",
        [
            ("utils", Origin.BACKEND, True),
            ("utils", Origin.FRONTEND, True),
            ("db", Origin.BACKEND, True),
            ("db", Origin.FRONTEND, False),
            ("component", Origin.FRONTEND, True),
            ("component", Origin.BACKEND, False),
            ("nonsense", Origin.BACKEND, False),
        ],
    )
    def test_is_allowed_package(self, package: str, origin: Origin, allowed: bool) -> None:
        assert is_allowed_package(package, origin) is allowed


class TestLogEvent:
    """Test the event model and its wire payload."""

    def test_payload_without_meta(self) -> None:
        event = LogEvent(stack="backend", level="info", package="route", message="hello")
        assert event.to_payload() == {
            "stack": "backend",
            "level": "info",
            "package": "route",
            "message": "hello",
        }

    def test_payload_with_meta_keeps_null_values(self) -> None:
        event = LogEvent(
            stack="frontend", level="warn", package="page", message="m", meta={"a": 1, "b": None},
        )
        assert event.to_payload()["meta"] == {"a": 1, "b": None}

    def test_package_must_match_stack(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            LogEvent(stack="frontend", level="info", package="db", message="m")

    @pytest.mark.parametrize("field,value", [("stack", "mobile"), ("level", "trace")])
    def test_unknown_enum_values_rejected(self, field: str, value: str) -> None:
        values = {"stack": "backend", "level": "info", "package": "db", "message": "m"}
        values[field] = value
        with pytest.raises(pydantic.ValidationError):
            LogEvent(**values)
