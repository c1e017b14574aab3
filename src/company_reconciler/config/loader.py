from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..excel.ranges import RangeError, RangeRef
from ..models.config_models import (
    DEFAULT_SHEET_MARKER,
    ClassificationConfig,
    ColumnOverrides,
    IdentifierConfig,
    ProjectionConfig,
    ReconcilerConfig,
    StatusMigrationConfig,
    WorkbookConfig,
)
from ..models.tracker_record import TRACKER_FIELDS

"""Config loader.

Responsibilities:
- Load YAML config/reconcile.yml
- Validate against the packaged config_schema.json
- Apply defaults and environment overrides for the workbook paths
- Return the frozen ReconcilerConfig
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "ENV_DATABASE_WORKBOOK",
    "ENV_TRACKER_WORKBOOK",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/reconcile.yml")

ENV_DATABASE_WORKBOOK = "RECON_DATABASE_WORKBOOK"
ENV_TRACKER_WORKBOOK = "RECON_TRACKER_WORKBOOK"

_TRACKER_ATTRS = frozenset(attr for attr, _, _ in TRACKER_FIELDS)


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing or not valid JSON, or the config data fails
            validation (missing required keys, wrong types, unknown keys).
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


def _check_range(section: str, cells: str) -> str:
    try:
        RangeRef.parse(cells)
    except RangeError as e:
        raise ConfigError(f"{section}.range: {e}") from e
    return cells


def _workbook(section: str, raw: dict[str, Any], env_var: str, default_marker: str | None) -> WorkbookConfig:
    # environment wins over the YAML value
    workbook = os.getenv(env_var) or raw["workbook"]
    return WorkbookConfig(
        workbook=workbook,
        sheet=raw.get("sheet"),
        sheet_marker=raw.get("sheet_marker", default_marker),
        fallback_to_first_sheet=bool(raw.get("fallback_to_first_sheet", False)),
        cells=_check_range(section, raw.get("range", "A1:Z")),
    )


def _columns(raw: dict[str, Any] | None) -> ColumnOverrides:
    if not raw:
        return ColumnOverrides()
    aliases = {name: tuple(entry["headers"]) for name, entry in raw.items() if "headers" in entry}
    positions = {name: int(entry["index"]) for name, entry in raw.items() if "index" in entry}
    return ColumnOverrides(aliases=aliases, positions=positions)


def _tuple_or(raw: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(raw[key]) if key in raw else default


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ReconcilerConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    cls_raw = data.get("classification", {})
    cls_default = ClassificationConfig()
    classification = ClassificationConfig(
        header_identifier_tokens=_tuple_or(cls_raw, "header_identifier_tokens", cls_default.header_identifier_tokens),
        header_name_tokens=_tuple_or(cls_raw, "header_name_tokens", cls_default.header_name_tokens),
        legend_marker=cls_raw.get("legend_marker", cls_default.legend_marker),
        legend_phrases=_tuple_or(cls_raw, "legend_phrases", cls_default.legend_phrases),
        legend_prefixes=_tuple_or(cls_raw, "legend_prefixes", cls_default.legend_prefixes),
        short_phrase_limit=cls_raw.get("short_phrase_limit", cls_default.short_phrase_limit),
        first_row_is_header=cls_raw.get("first_row_is_header", cls_default.first_row_is_header),
    )

    proj_raw = data.get("projection", {})
    proj_default = ProjectionConfig()
    last_write = _tuple_or(proj_raw, "last_write_fields", proj_default.last_write_fields)
    unknown = sorted(set(last_write) - _TRACKER_ATTRS)
    if unknown:
        raise ConfigError(f"projection.last_write_fields: unknown tracker fields {unknown}")
    projection = ProjectionConfig(
        default_status=proj_raw.get("default_status", proj_default.default_status),
        last_write_fields=last_write,
    )

    ident_raw = data.get("identifier", {})
    mig_raw = data.get("status_migration", {})
    columns_raw = data.get("columns", {})

    return ReconcilerConfig(
        database=_workbook("database", data["database"], ENV_DATABASE_WORKBOOK, DEFAULT_SHEET_MARKER),
        tracker=_workbook("tracker", data["tracker"], ENV_TRACKER_WORKBOOK, None),
        identifier=IdentifierConfig(
            prefix=ident_raw.get("prefix", "ME"),
            width=ident_raw.get("width", 4),
        ),
        classification=classification,
        database_columns=_columns(columns_raw.get("database")),
        tracker_columns=_columns(columns_raw.get("tracker")),
        projection=projection,
        status_migration=StatusMigrationConfig(
            header=mig_raw.get("header", "status"),
            fallback_column=mig_raw.get("fallback_column", 2),
        ),
        log_directory=data.get("log_directory", "./logs"),
    )
