from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the company reconciler.

These are the typed, defaulted view of config/reconcile.yml produced by
company_reconciler.config.loader. Every field has a default so tests can build a
config in code without a YAML file.
"""

DEFAULT_SHEET_MARKER = "AUTOMATION ONLY"

DEFAULT_LEGEND_PHRASES = ("cold call", "whatsapp/linkedin")
DEFAULT_LEGEND_PREFIXES = ("contacted for", "contact from", "previous reachable", "unreachable")


@dataclass(frozen=True)
class WorkbookConfig:
    """Location of one sheet tab inside an .xlsx workbook.

    sheet: explicit tab name. When None, the tab is located by sheet_marker; when
    that is None too (tracker), the first tab is used.
    """
    workbook: str
    sheet: str | None = None
    sheet_marker: str | None = None
    fallback_to_first_sheet: bool = False  # only consulted when sheet_marker finds nothing
    cells: str = "A1:Z"  # rectangular range read from the tab


@dataclass(frozen=True)
class IdentifierConfig:
    prefix: str = "ME"
    width: int = 4  # zero padding of the numeric part


@dataclass(frozen=True)
class ClassificationConfig:
    """Data for the row classifier rule table. Matching is case-insensitive."""
    header_identifier_tokens: tuple[str, ...] = ("No.", "Company ID")
    header_name_tokens: tuple[str, ...] = ("Company Name",)
    legend_marker: str = "legend"
    legend_phrases: tuple[str, ...] = DEFAULT_LEGEND_PHRASES
    legend_prefixes: tuple[str, ...] = DEFAULT_LEGEND_PREFIXES
    short_phrase_limit: int = 50  # phrase rules only apply to names shorter than this
    first_row_is_header: bool = True


@dataclass(frozen=True)
class ColumnOverrides:
    """Per-field overrides on top of the built-in column layout.

    aliases: semantic field -> header texts that identify the column
    positions: semantic field -> 0-based fallback column when no header matches
    """
    aliases: dict[str, tuple[str, ...]] = field(default_factory=dict)
    positions: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ProjectionConfig:
    default_status: str = "To Contact"
    # TrackerRecord fields that take the latest non-empty value within an id group;
    # every other field is first-write-wins.
    last_write_fields: tuple[str, ...] = ("last_update",)


@dataclass(frozen=True)
class StatusMigrationConfig:
    header: str = "status"
    fallback_column: int = 2


@dataclass(frozen=True)
class ReconcilerConfig:
    """Root configuration object."""
    database: WorkbookConfig
    tracker: WorkbookConfig
    identifier: IdentifierConfig = field(default_factory=IdentifierConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    database_columns: ColumnOverrides = field(default_factory=ColumnOverrides)
    tracker_columns: ColumnOverrides = field(default_factory=ColumnOverrides)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    status_migration: StatusMigrationConfig = field(default_factory=StatusMigrationConfig)
    log_directory: str = "./logs"
