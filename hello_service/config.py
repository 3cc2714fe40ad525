# hello_service/config.py
"""
Configuration loading for the service.

Values are resolved with the following precedence:

1. Explicit overrides passed to `load_config`
2. Environment variables (HELLO_SERVICE_PORT, HELLO_SERVICE_JWT_SECRET, ...)
3. An external TOML file (`path` argument or HELLO_SERVICE_CONFIG)
4. The packaged `resources/application.toml`
5. Model defaults
"""

import copy
import logging
import os
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hello_service.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "HELLO_SERVICE_"
CONFIG_PATH_ENV = ENV_PREFIX + "CONFIG"
PACKAGED_CONFIG = "resources/application.toml"

# env var suffix -> (section, key)
ENV_OVERRIDES = {
    "HOST": ("deployment", "host"),
    "PORT": ("deployment", "port"),
    "JWT_SECRET": ("jwt", "secret"),
    "JWT_AUDIENCE": ("jwt", "audience"),
    "JWT_DOMAIN": ("jwt", "domain"),
    "LOG_LEVEL": ("logging", "level"),
}


def _coerce_level(value: Any) -> str:
    level = str(value).upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(f"unknown log level {value!r}")
    return level


class DeploymentConfig(BaseModel):
    host: str = Field("0.0.0.0", min_length=1)
    port: int = Field(8080, ge=0, le=65535)

    model_config = ConfigDict(extra="forbid")


class JWTConfig(BaseModel):
    """Settings for the bearer-token authentication scheme."""

    realm: str = Field("hello-service", min_length=1)
    domain: str = Field(..., description="Expected token issuer")
    audience: str = Field(..., min_length=1)
    secret: str = Field(..., min_length=1)
    algorithm: str = Field("HS256", pattern=r"^HS(256|384|512)$")
    leeway: int = Field(0, ge=0, description="Clock skew tolerance in seconds")

    model_config = ConfigDict(extra="forbid")


class MonitoringConfig(BaseModel):
    enabled: bool = True
    level: str = "INFO"
    path_prefix: str = "/"

    model_config = ConfigDict(extra="forbid")

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, value: Any) -> str:
        return _coerce_level(value)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(message)s"

    model_config = ConfigDict(extra="forbid")

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, value: Any) -> str:
        return _coerce_level(value)


class Settings(BaseModel):
    """Top-level configuration shared by every configurator."""

    deployment: DeploymentConfig = Field(default_factory=DeploymentConfig)
    jwt: JWTConfig
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    source: Optional[Path] = Field(None, exclude=True)

    model_config = ConfigDict(extra="forbid")


def _merge(base: Dict[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in extra.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_packaged() -> Dict[str, Any]:
    text = resources.files("hello_service").joinpath(PACKAGED_CONFIG).read_text(
        encoding="utf-8"
    )
    return tomllib.loads(text)


def _read_file(path: Path) -> Dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _read_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for suffix, (section, key) in ENV_OVERRIDES.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is not None and raw != "":
            values.setdefault(section, {})[key] = raw
    return values


def load_config(
    path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve and validate the service settings."""
    environ = os.environ if environ is None else environ

    data = _read_packaged()

    if path is None and environ.get(CONFIG_PATH_ENV):
        path = Path(environ[CONFIG_PATH_ENV])
    if path is not None:
        path = Path(path)
        data = _merge(data, _read_file(path))

    data = _merge(data, _read_env(environ))
    if overrides:
        data = _merge(data, overrides)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc

    settings.source = path
    return settings


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(level=config.level, format=config.format, force=True)
    logging.getLogger("uvicorn").setLevel(config.level)
