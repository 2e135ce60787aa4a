from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (default path config/import.yml)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for every optional key

The fuzzy-match threshold and token similarity are tunable here rather than
hidden constants in the resolver.
"""

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "FuzzyMatchConfig",
    "ImportConfig",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback; DATABASE_URL / PG* environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class FuzzyMatchConfig:
    threshold: float = 0.80  # minimum token-set confidence (0..1] for a fuzzy match
    token_similarity: float = 85.0  # rapidfuzz ratio (0..100) for two tokens to count as equal


@dataclass(frozen=True)
class ImportConfig:
    locale: str = "en"
    logs_dir: str = "./logs"
    fuzzy_match: FuzzyMatchConfig = field(default_factory=FuzzyMatchConfig)
    ocr_timeout_seconds: float = 60.0
    ocr_language: str = "ita"
    default_clock_in: str = "07:00"  # start time for hours-only attendance rows
    default_category: str = "Altro"
    default_unit: str = "pz"
    sample_size: int = 5
    column_aliases: dict[str, dict[str, list[str]]] = field(default_factory=dict)  # kind -> field -> extra headers
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or the config violates it.
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


def config_from_mapping(data: dict[str, Any]) -> ImportConfig:
    """Build an ImportConfig from already validated data, filling defaults."""
    defaults = ImportConfig()
    fuzzy_raw = data.get("fuzzy_match") or {}
    ocr_raw = data.get("ocr") or {}
    db_raw = data.get("database") or {}
    return ImportConfig(
        locale=data.get("locale", defaults.locale),
        logs_dir=data.get("logs_dir", defaults.logs_dir),
        fuzzy_match=FuzzyMatchConfig(
            threshold=float(fuzzy_raw.get("threshold", defaults.fuzzy_match.threshold)),
            token_similarity=float(fuzzy_raw.get("token_similarity", defaults.fuzzy_match.token_similarity)),
        ),
        ocr_timeout_seconds=float(ocr_raw.get("timeout_seconds", defaults.ocr_timeout_seconds)),
        ocr_language=ocr_raw.get("language", defaults.ocr_language),
        default_clock_in=(data.get("attendance") or {}).get("default_clock_in", defaults.default_clock_in),
        default_category=(data.get("materials") or {}).get("default_category", defaults.default_category),
        default_unit=(data.get("materials") or {}).get("default_unit", defaults.default_unit),
        sample_size=int((data.get("preview") or {}).get("sample_size", defaults.sample_size)),
        column_aliases={kind: dict(fields) for kind, fields in (data.get("columns") or {}).items()},
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
    )


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)
    return config_from_mapping(data)
