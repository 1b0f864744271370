from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_LIMIT,
    DEFAULT_MATRIX_PROTECTED_ROWS,
    DEFAULT_PROTECTED_ROWS,
    CacheConfig,
    ChartConfig,
    ChartsConfig,
    DatabaseConfig,
    PatternApiConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/charts.yml
- Validate against contracts/config_schema.json
- Apply defaults (timezone=UTC, limit=1500, protected_rows=0 for charts and 10 for
  pattern-service matrices, cache TTL 2h)
- Build the typed ChartsConfig
"""

# matka_chart/config/loader.py -> matka_chart/contracts/config_schema.json
SCHEMA_PATH = Path(__file__).parent.parent / "contracts" / "config_schema.json"

DEFAULT_CONFIG_PATH = Path("config/charts.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Args:
        data: Configuration data to validate

    Raises:
        ConfigError: If any of the following occurs:
            - The schema file does not exist.
            - The schema file is not valid JSON.
            - The config data fails schema validation (e.g., missing required keys,
              wrong types, or other schema violations).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_charts(raw: dict[str, Any]) -> dict[str, ChartConfig]:
    charts: dict[str, ChartConfig] = {}
    for key, item in raw.items():
        days = tuple(item["days"])
        if len(set(days)) != len(days):
            raise ConfigError(f"chart '{key}' has duplicate days: {list(days)}")
        charts[key] = ChartConfig(
            key=key,
            name=item.get("name", key),
            table=item.get("table", key),
            days=days,
            limit=item.get("limit", DEFAULT_LIMIT),
        )
    return charts


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ChartsConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    cache_raw = data.get("cache", {})
    defaults = CacheConfig()
    cache = CacheConfig(
        directory=cache_raw.get("directory", defaults.directory),
        ttl_seconds=cache_raw.get("ttl_seconds", defaults.ttl_seconds),
        version=str(cache_raw.get("version", defaults.version)),
    )
    api_raw = data.get("pattern_api", {})
    api_defaults = PatternApiConfig()
    pattern_api = PatternApiConfig(
        url=api_raw.get("url"),
        timeout=api_raw.get("timeout", api_defaults.timeout),
        retry_delay=api_raw.get("retry_delay", api_defaults.retry_delay),
    )
    search_raw = data.get("search", {})

    return ChartsConfig(
        source_directory=data["source_directory"],
        charts=_build_charts(data["charts"]),
        database=db,
        timezone=data.get("timezone", "UTC"),
        protected_rows=search_raw.get("protected_rows", DEFAULT_PROTECTED_ROWS),
        matrix_protected_rows=search_raw.get("matrix_protected_rows", DEFAULT_MATRIX_PROTECTED_ROWS),
        cache=cache,
        pattern_api=pattern_api,
    )
