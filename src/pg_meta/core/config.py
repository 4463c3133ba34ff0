"""Connection configuration for pg-meta.

Settings come from a TOML file with named profiles, libpq environment
variables, a DSN and CLI flags. resolve_config() stacks them as layers,
later layers winning, and records which layer supplied each field:

1. Built-in defaults
2. Config file globals (statement_timeout, default_format)
3. Named profile (--profile, PG_META_PROFILE or default_profile)
4. Environment variables (PGHOST, PGPORT, PGDATABASE, PGUSER, PGPASSWORD)
5. --dsn
6. CLI flags (--host, --port, ...)
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Annotated, Any
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    ValidationError,
    model_validator,
)

from pg_meta.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "pg-meta" / "config.toml"

PROFILE_ENV_VAR = "PG_META_PROFILE"

_PG_ENV_VARS: dict[str, str] = {
    "PGHOST": "host",
    "PGPORT": "port",
    "PGDATABASE": "dbname",
    "PGUSER": "user",
    "PGPASSWORD": "password",  # pragma: allowlist secret
}

# CLI option name -> settings field
_CLI_FIELDS: dict[str, str] = {
    "host": "host",
    "port": "port",
    "database": "dbname",
    "user": "user",
    "password": "password",  # pragma: allowlist secret
    "sslmode": "sslmode",
    "timeout": "statement_timeout",
}

# Query parameters override the host and port in the authority part.
_DSN_QUERY_PARAMS: dict[str, type] = {
    "host": str,
    "port": int,
    "sslmode": str,
    "connect_timeout": int,
    "application_name": str,
}

_SSLMODES = ("disable", "allow", "prefer", "require", "verify-ca", "verify-full")

_OUTPUT_FORMATS = ("table", "json", "csv")


def _check_sslmode(v: str) -> str:
    if v not in _SSLMODES:
        msg = f"Invalid sslmode: '{v}'. Must be one of: {', '.join(sorted(_SSLMODES))}"
        raise ValueError(msg)
    return v


def _check_port(v: int) -> int:
    if not 1 <= v <= 65535:
        raise ValueError(f"Invalid port: {v}. Must be 1-65535")
    return v


def _check_format(v: str | None) -> str | None:
    if v is not None and v not in _OUTPUT_FORMATS:
        msg = f"Invalid default_format: '{v}'. Must be one of: {', '.join(sorted(_OUTPUT_FORMATS))}"
        raise ValueError(msg)
    return v


def _check_timeout(v: float | None) -> float | None:
    if v is not None and v <= 0:
        raise ValueError(f"Invalid statement_timeout: {v}. Must be greater than 0 seconds")
    return v


SslMode = Annotated[str, AfterValidator(_check_sslmode)]
Port = Annotated[int, AfterValidator(_check_port)]
OutputFormatName = Annotated[str | None, AfterValidator(_check_format)]
StatementTimeout = Annotated[float | None, AfterValidator(_check_timeout)]


def sslmode_for(ssl: bool) -> str:
    """Map an on/off TLS flag onto a libpq sslmode."""
    return "require" if ssl else "disable"


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Split a postgresql:// (or postgres://) URL into connection fields.

    Only the fields present in the URL are returned. Userinfo and the
    database name are percent-decoded.
    """
    parsed = urlparse(dsn)
    if parsed.scheme not in ("postgresql", "postgres"):
        msg = f"Invalid DSN scheme: '{parsed.scheme}'. Expected 'postgresql' or 'postgres'"
        raise ConfigError(msg)
    try:
        port = parsed.port
    except ValueError as e:
        raise ConfigError(f"Invalid DSN port: {e}") from e

    fields: dict[str, Any] = {}
    if parsed.hostname:
        fields["host"] = parsed.hostname
    if port:
        fields["port"] = port
    dbname = parsed.path.strip("/")
    if dbname:
        fields["dbname"] = unquote(dbname)
    if parsed.username:
        fields["user"] = unquote(parsed.username)
    if parsed.password:
        fields["password"] = unquote(parsed.password)

    params = parse_qs(parsed.query)
    for name, convert in _DSN_QUERY_PARAMS.items():
        if name in params:
            try:
                fields[name] = convert(params[name][0])
            except ValueError as e:
                raise ConfigError(f"Invalid DSN parameter {name}: {e}") from e
    return fields


class ConnectionSettings(BaseModel):
    """libpq connection fields shared by profiles and the resolved config."""

    host: str = "localhost"
    port: Port = 5432
    dbname: str = "postgres"
    user: str | None = None
    password: str | None = None
    sslmode: SslMode = "prefer"
    connect_timeout: int = 10
    application_name: str = "pg-meta"


class PgProfile(ConnectionSettings):
    """A named profile from the config file.

    A ``dsn`` entry fills in every field the profile does not set itself.
    """

    dsn: str | None = None

    @model_validator(mode="before")
    @classmethod
    def expand_dsn(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("dsn"):
            return {**parse_dsn(data["dsn"]), **data}
        return data


class AppConfig(BaseModel):
    """Contents of the TOML config file."""

    statement_timeout: StatementTimeout = None
    default_format: OutputFormatName = None
    default_profile: str | None = None
    profiles: dict[str, PgProfile] = {}


class ResolvedConfig(ConnectionSettings):
    """Connection configuration handed to every catalog operation."""

    model_config = ConfigDict(frozen=True)

    statement_timeout: StatementTimeout = None
    default_format: str | None = None
    active_profile: str | None = None
    sources: dict[str, str] = {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Read the TOML config file; a missing file yields an empty AppConfig."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return AppConfig()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {path}: {e}") from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


Layer = tuple[str, dict[str, Any]]


def _profile_layer(config: AppConfig, name: str) -> Layer:
    profile = config.profiles.get(name)
    if profile is None:
        available = ", ".join(sorted(config.profiles)) or "none"
        raise ConfigError(f"Unknown profile: '{name}'. Available profiles: {available}")
    values = {key: getattr(profile, key) for key in profile.model_fields_set - {"dsn"}}
    return f"profile: {name}", values


def _env_layers() -> list[Layer]:
    layers: list[Layer] = []
    for var, field in _PG_ENV_VARS.items():
        value: Any = os.environ.get(var)
        if value is None:
            continue
        if field == "port":
            try:
                value = int(value)
            except ValueError:
                msg = f"Invalid {var} value: '{value}'. Must be an integer"
                raise ConfigError(msg) from None
        layers.append((f"env: {var}", {field: value}))
    return layers


def _cli_layers(overrides: dict[str, Any]) -> list[Layer]:
    if overrides.get("ssl") is not None and overrides.get("sslmode") is None:
        overrides = {**overrides, "sslmode": sslmode_for(overrides["ssl"])}
    return [
        (f"cli: --{option}", {field: overrides[option]})
        for option, field in _CLI_FIELDS.items()
        if overrides.get(option) is not None
    ]


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    dsn: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Stack every configuration layer into one ResolvedConfig.

    ``cli_overrides`` takes the CLI option names (host, port, database,
    user, password, sslmode, ssl, timeout); None values are ignored.
    ``sources`` maps each field to the layer that supplied it.
    """
    defaults = ConnectionSettings().model_dump()
    defaults.update(statement_timeout=None, default_format=None)
    layers: list[Layer] = [
        ("default", defaults),
        (
            "config",
            config.model_dump(
                include={"statement_timeout", "default_format"}, exclude_none=True
            ),
        ),
    ]

    active_profile = (
        profile_name or os.environ.get(PROFILE_ENV_VAR) or config.default_profile
    )
    if active_profile:
        layers.append(_profile_layer(config, active_profile))
    layers.extend(_env_layers())
    if dsn:
        layers.append(("dsn", parse_dsn(dsn)))
    layers.extend(_cli_layers(cli_overrides))

    resolved: dict[str, Any] = {}
    sources: dict[str, str] = {}
    for source, values in layers:
        for key, value in values.items():
            resolved[key] = value
            sources[key] = source

    try:
        return ResolvedConfig(**resolved, active_profile=active_profile, sources=sources)
    except ValidationError as e:
        raise ConfigError(f"Invalid connection settings: {e}") from e
