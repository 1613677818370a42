#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Central configuration access.
#
"""
Central configuration access helpers.

The server reads its settings once at start-up. Anything missing or malformed
raises :class:`ConfigError` so the process never starts half configured.
"""

from dataclasses import dataclass
from typing import Any

from utils import load_config


DEFAULT_CONFIG_PATH = "cfg/config.yaml"


class ConfigError(ValueError):
    """Configuration value missing or invalid."""
    pass


@dataclass(frozen=True)
class DatabaseSettings:
    host: str
    user: str
    password: str
    name: str
    port: int = 3306


@dataclass(frozen=True)
class ServerSettings:
    port: int
    pool_size: int
    host: str = "0.0.0.0"
    max_workers: int = 64
    read_timeout: float = 30.0


@dataclass(frozen=True)
class AppSettings:
    database: DatabaseSettings
    server: ServerSettings
    country_code: str = "ES"
    bcrypt_rounds: int = 12
    log_level: str = "INFO"
    sql_file: str = "./db/signserver.sql"


def get_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    return load_config(config_path=config_path)


def _require(section: dict[str, Any], name: str, key: str) -> Any:
    value = section.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigError(f"Missing required setting '{name}.{key}'")
    return value


def _as_int(value: Any, name: str, minimum: int, maximum: int | None = None) -> int:
    # bool is an int subclass; "yes" is not a port
    if isinstance(value, bool):
        raise ConfigError(f"Setting '{name}' must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Setting '{name}' must be an integer, got {value!r}") from None
    if number < minimum or (maximum is not None and number > maximum):
        upper = f" and {maximum}" if maximum is not None else ""
        raise ConfigError(f"Setting '{name}' must be between {minimum}{upper}, got {number}")
    return number


def _as_positive_float(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Setting '{name}' must be a number, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"Setting '{name}' must be positive, got {number}")
    return number


def build_settings(raw: dict[str, Any], **overrides: Any) -> AppSettings:
    """
    Validate a raw configuration mapping and build :class:`AppSettings`.

    Args:
        raw: Parsed YAML document
        **overrides: Non-None values replace config entries
            (user, password, port, pool_size)

    Raises:
        ConfigError: On any missing or malformed value
    """
    applied = {key: value for key, value in overrides.items() if value is not None}

    db_raw = raw.get("database")
    server_raw = raw.get("server")
    if not isinstance(db_raw, dict):
        raise ConfigError("Missing 'database' section")
    if not isinstance(server_raw, dict):
        raise ConfigError("Missing 'server' section")

    db_raw = {**db_raw}
    server_raw = {**server_raw}
    for key in ("user", "password"):
        if key in applied:
            db_raw[key] = applied[key]
    for key in ("port", "pool_size"):
        if key in applied:
            server_raw[key] = applied[key]

    database = DatabaseSettings(
        host=str(_require(db_raw, "database", "host")),
        user=str(_require(db_raw, "database", "user")),
        # an empty password is legitimate for local servers
        password=str(db_raw.get("password") or ""),
        name=str(_require(db_raw, "database", "name")),
        port=_as_int(db_raw.get("port", 3306), "database.port", 1, 65535),
    )
    server = ServerSettings(
        host=str(server_raw.get("host") or "0.0.0.0"),
        port=_as_int(_require(server_raw, "server", "port"), "server.port", 0, 65535),
        pool_size=_as_int(_require(server_raw, "server", "pool_size"), "server.pool_size", 1),
        max_workers=_as_int(server_raw.get("max_workers", 64), "server.max_workers", 1),
        read_timeout=_as_positive_float(server_raw.get("read_timeout", 30), "server.read_timeout"),
    )

    directory = raw.get("directory") or {}
    security = raw.get("security") or {}
    logging_raw = raw.get("logging") or {}
    if not all(isinstance(section, dict) for section in (directory, security, logging_raw)):
        raise ConfigError("Sections 'directory', 'security' and 'logging' must be mappings")

    country_code = str(directory.get("country_code", "ES")).strip().upper()
    if len(country_code) != 2 or not country_code.isalpha():
        raise ConfigError(f"Setting 'directory.country_code' must be a two-letter code, got {country_code!r}")

    log_level = str(logging_raw.get("level", "INFO")).upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"Setting 'logging.level' is not a log level: {log_level!r}")

    return AppSettings(
        database=database,
        server=server,
        country_code=country_code,
        # bcrypt accepts cost factors 4..31
        bcrypt_rounds=_as_int(security.get("bcrypt_rounds", 12), "security.bcrypt_rounds", 4, 31),
        log_level=log_level,
        sql_file=str(raw.get("sql_file") or "./db/signserver.sql"),
    )


def load_settings(config_path: str = DEFAULT_CONFIG_PATH, **overrides: Any) -> AppSettings:
    """Read the YAML file and validate it; wraps load failures in ConfigError."""
    try:
        raw = get_config(config_path)
    except RuntimeError as e:
        raise ConfigError(str(e)) from e
    return build_settings(raw, **overrides)
