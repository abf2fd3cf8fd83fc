"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation.
An optional config.yaml provides defaults; environment variables override it.
"""

import json
import os
from functools import lru_cache
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            "../../config.yaml",  # Project root from src/snaplink
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


class StoreSettings(BaseSettings):
    """Short URL store configuration."""

    default_validity_days: int = Field(default=30, gt=0, description="Validity used when the caller gives none")
    shortcode_length: int = Field(default=6, ge=3, le=10, description="Length of generated shortcodes")
    collision_warning_threshold: int = Field(
        default=5, ge=1, description="Generated-key collisions before a degradation warning"
    )

    model_config = SettingsConfigDict(env_prefix="SNAPLINK_STORE_")


class CollectorSettings(BaseSettings):
    """Remote log collector and its auth endpoint."""

    enabled: bool = Field(default=True, description="Ship events to the collector")
    log_url: str = Field(
        default="http://20.244.56.144/evaluation-service/logs",
        description="Collector endpoint receiving log events",
    )
    auth_url: str = Field(
        default="http://20.244.56.144/evaluation-service/auth",
        description="Endpoint issuing bearer tokens for the collector",
    )
    origin: str = Field(default="backend", description="Origin (stack) stamped on events; this service is server-side")
    timeout_seconds: float = Field(default=5.0, gt=0, description="Timeout for one delivery or token fetch")
    max_in_flight: int = Field(default=100, ge=1, description="Deliveries allowed in flight before dropping")
    default_token_lifetime_seconds: int = Field(
        default=3600, gt=0, description="Token lifetime when the auth response has no expires_in"
    )

    # Credentials posted to the auth endpoint
    email: str = Field(default="", description="Registered email")
    name: str = Field(default="", description="Registered name")
    roll_no: str = Field(default="", description="Registered roll number")
    access_code: str = Field(default="", description="Access code")
    client_id: str = Field(default="", description="Client ID")
    client_secret: str = Field(default="", description="Client secret")

    @field_validator("origin")
    @classmethod
    def validate_origin(cls, v: str) -> str:
        """Server-side events use categories only the backend stack allows."""
        if v != "backend":
            raise ValueError("origin must be 'backend' for a server process")
        return v

    def auth_payload(self) -> Dict[str, str]:
        """Body posted to the auth endpoint."""
        return {
            "email": self.email,
            "name": self.name,
            "rollNo": self.roll_no,
            "accessCode": self.access_code,
            "clientID": self.client_id,
            "clientSecret": self.client_secret,
        }

    model_config = SettingsConfigDict(env_prefix="SNAPLINK_COLLECTOR_")


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    public_base_url: str = Field(default="http://localhost:3000", description="Base used to build short links")

    # Component settings
    store: StoreSettings = Field(default_factory=StoreSettings)
    collector: CollectorSettings = Field(default_factory=CollectorSettings)

    model_config = SettingsConfigDict(env_prefix="SNAPLINK_", case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""

    # Load config file data
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "SNAPLINK_HOST",
        ("server", "port"): "SNAPLINK_PORT",
        ("server", "debug"): "SNAPLINK_DEBUG",
        ("server", "log_level"): "SNAPLINK_LOG_LEVEL",
        ("server", "public_base_url"): "SNAPLINK_PUBLIC_BASE_URL",
        ("store", "default_validity_days"): "SNAPLINK_STORE_DEFAULT_VALIDITY_DAYS",
        ("store", "shortcode_length"): "SNAPLINK_STORE_SHORTCODE_LENGTH",
        ("store", "collision_warning_threshold"): "SNAPLINK_STORE_COLLISION_WARNING_THRESHOLD",
        ("collector", "enabled"): "SNAPLINK_COLLECTOR_ENABLED",
        ("collector", "log_url"): "SNAPLINK_COLLECTOR_LOG_URL",
        ("collector", "auth_url"): "SNAPLINK_COLLECTOR_AUTH_URL",
        ("collector", "origin"): "SNAPLINK_COLLECTOR_ORIGIN",
        ("collector", "timeout_seconds"): "SNAPLINK_COLLECTOR_TIMEOUT_SECONDS",
        ("collector", "max_in_flight"): "SNAPLINK_COLLECTOR_MAX_IN_FLIGHT",
        ("collector", "default_token_lifetime_seconds"): "SNAPLINK_COLLECTOR_DEFAULT_TOKEN_LIFETIME_SECONDS",
        ("collector", "email"): "SNAPLINK_COLLECTOR_EMAIL",
        ("collector", "name"): "SNAPLINK_COLLECTOR_NAME",
        ("collector", "roll_no"): "SNAPLINK_COLLECTOR_ROLL_NO",
        ("collector", "access_code"): "SNAPLINK_COLLECTOR_ACCESS_CODE",
        ("collector", "client_id"): "SNAPLINK_COLLECTOR_CLIENT_ID",
        ("collector", "client_secret"): "SNAPLINK_COLLECTOR_CLIENT_SECRET",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = config_data.get(section, {}).get(key)
            if value is not None:
                if isinstance(value, (dict, list)):
                    value = json.dumps(value)
                os.environ[env_var] = str(value)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
