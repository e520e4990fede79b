# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Key Service Configuration.

Read-only configuration injected once into the credential service:
- Inter-service keys and addresses, one entry per known service
- Store locations (database + collection) per principal partition
- Storage backend selection
- Listener ports

``load_config`` builds the configuration from an optional YAML file and
then applies environment overrides.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from keyservice.constants import PrincipalType
from keyservice.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ServiceName(str, Enum):
    """Internal services that hold a static service key."""

    USER = "user"
    COMPANY = "company"
    HOOKS = "hooks"
    BILLING = "billing"
    PERMISSION = "permission"
    ORCHESTRATOR = "orchestrator"


# Environment variable prefix for each service's KEY / ADDRESS pair.
SERVICE_ENV_PREFIXES: dict[ServiceName, str] = {
    ServiceName.USER: "USER_SERVICE",
    ServiceName.COMPANY: "COMPANY_SERVICE",
    ServiceName.HOOKS: "HOOKS_SERVICE",
    ServiceName.BILLING: "BILLING_SERVICE",
    ServiceName.PERMISSION: "PERMISSION_SERVICE",
    ServiceName.ORCHESTRATOR: "ORCHESTRATOR",
}

DEFAULT_SERVICE_ADDRESSES: dict[ServiceName, str] = {
    ServiceName.USER: "https://user-service.k8sdeploy",
    ServiceName.COMPANY: "https://company-service.k8sdeploy",
    ServiceName.HOOKS: "https://hooks-service.k8sdeploy",
    ServiceName.BILLING: "https://billing-service.k8sdeploy",
    ServiceName.PERMISSION: "https://permissions-service.k8sdeploy",
    ServiceName.ORCHESTRATOR: "https://orchestrator.k8sdeploy",
}


class ServiceEndpoint(BaseModel):
    """Static key and address of one internal service."""

    model_config = {"frozen": True}

    key: str = Field(default="", description="Static inter-service key")
    address: str = Field(default="", description="Service base address")


class StoreLocation(BaseModel):
    """Where one partition of records lives."""

    model_config = {"frozen": True}

    database: str = Field(..., min_length=1)
    collection: str = Field(default="keys", min_length=1)


class StoreLocations(BaseModel):
    """Store locations for the bundle partition and each principal type."""

    model_config = {"frozen": True}

    bundle: StoreLocation = Field(default_factory=lambda: StoreLocation(database="keys"))
    user: StoreLocation = Field(default_factory=lambda: StoreLocation(database="users"))
    hooks: StoreLocation = Field(default_factory=lambda: StoreLocation(database="hooks"))
    agent: StoreLocation = Field(default_factory=lambda: StoreLocation(database="agents"))

    def for_type(self, principal_type: PrincipalType) -> StoreLocation:
        """Return the partition holding single key/secret pairs for a type."""
        return getattr(self, PrincipalType(principal_type).value)

    @model_validator(mode="after")
    def partitions_are_distinct(self) -> "StoreLocations":
        """Each partition needs its own database and collection."""
        seen: dict[tuple[str, str], str] = {}
        for name in ("bundle", "user", "hooks", "agent"):
            location = getattr(self, name)
            key = (location.database, location.collection)
            if key in seen:
                raise ValueError(
                    f"partitions {seen[key]!r} and {name!r} share "
                    f"{location.database}/{location.collection}"
                )
            seen[key] = name
        return self


class StoreConfig(BaseModel):
    """Storage backend selection."""

    model_config = {"frozen": True}

    backend: Literal["memory", "redis", "sql"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    sql_url: str = "sqlite+aiosqlite:///keyservice.db"


def _default_services() -> dict[ServiceName, ServiceEndpoint]:
    return {
        name: ServiceEndpoint(address=address)
        for name, address in DEFAULT_SERVICE_ADDRESSES.items()
    }


class KeyServiceConfig(BaseModel):
    """Top-level, read-only key service configuration."""

    model_config = {"frozen": True}

    services: dict[ServiceName, ServiceEndpoint] = Field(default_factory=_default_services)
    locations: StoreLocations = Field(default_factory=StoreLocations)
    store: StoreConfig = Field(default_factory=StoreConfig)

    http_port: int = Field(default=3000, ge=1, le=65535)
    grpc_port: int = Field(default=8001, ge=1, le=65535)
    development: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("services", mode="before")
    @classmethod
    def fill_missing_services(cls, value: Any) -> Any:
        """Every known service gets an entry, defaulting its address."""
        if not isinstance(value, Mapping):
            return value
        merged: dict[ServiceName, Any] = {}
        for name in ServiceName:
            raw = value.get(name, value.get(name.value))
            if raw is None:
                merged[name] = ServiceEndpoint(address=DEFAULT_SERVICE_ADDRESSES[name])
            elif isinstance(raw, Mapping) and "address" not in raw:
                merged[name] = {**raw, "address": DEFAULT_SERVICE_ADDRESSES[name]}
            else:
                merged[name] = raw
        return merged

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    def service_key(self, name: ServiceName) -> str:
        """Return the configured key for a service ("" when unset)."""
        return self.services[name].key


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Translate environment variables into a partial config mapping."""
    overrides: dict[str, Any] = {}

    services: dict[str, dict[str, str]] = {}
    for name, prefix in SERVICE_ENV_PREFIXES.items():
        entry: dict[str, str] = {}
        if f"{prefix}_KEY" in environ:
            entry["key"] = environ[f"{prefix}_KEY"]
        if f"{prefix}_ADDRESS" in environ:
            entry["address"] = environ[f"{prefix}_ADDRESS"]
        if entry:
            services[name.value] = entry
    if services:
        overrides["services"] = services

    store: dict[str, str] = {}
    for env_name, field_name in (
        ("KEYSERVICE_STORE_BACKEND", "backend"),
        ("KEYSERVICE_REDIS_URL", "redis_url"),
        ("KEYSERVICE_SQL_URL", "sql_url"),
    ):
        if env_name in environ:
            store[field_name] = environ[env_name]
    if store:
        overrides["store"] = store

    if "HTTP_PORT" in environ:
        overrides["http_port"] = environ["HTTP_PORT"]
    if "GRPC_PORT" in environ:
        overrides["grpc_port"] = environ["GRPC_PORT"]
    if "DEVELOPMENT" in environ:
        overrides["development"] = environ["DEVELOPMENT"].strip().lower() in ("1", "true", "yes")
    if "LOG_LEVEL" in environ:
        overrides["log_level"] = environ["LOG_LEVEL"].upper()
    return overrides


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = _merge(dict(result[key]), value)
        else:
            result[key] = value
    return result


def load_config(
    path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> KeyServiceConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Optional YAML file. Missing keys fall back to defaults.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        The frozen configuration.

    Raises:
        ConfigurationError: If the file is unreadable or values are invalid.
    """
    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Failed to read config {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config {path} must be a mapping")

    data = _merge(data, _env_overrides(os.environ if environ is None else environ))

    try:
        config = KeyServiceConfig(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    missing = [
        name.value
        for name in (ServiceName.HOOKS, ServiceName.ORCHESTRATOR)
        if not config.service_key(name)
    ]
    if missing:
        logger.warning("No service key configured for: %s", ", ".join(missing))
    return config


__all__ = [
    "ServiceName",
    "ServiceEndpoint",
    "StoreLocation",
    "StoreLocations",
    "StoreConfig",
    "KeyServiceConfig",
    "load_config",
]
