from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..models.config_models import ClassificationConfig
from ..models.row_data import CandidateRecord, Classification, RowClass
from .columns import ColumnMap, DATABASE_LAYOUT, resolve_columns

"""Row classifier: raw row -> Header / Legend / Empty / CandidateRecord.

Classification is an ordered rule table. The first rule whose predicate matches
decides the outcome, which gives the precedence Empty > Header > Legend > Candidate.
Legend phrases, prefixes and header tokens are configuration data.

Legend matching is two-tier: any identifier or name containing the legend marker is a
legend row, but contact-method phrases only match short names exactly (or by prefix),
so a company such as "LinkedIn Corporation" stays a candidate.
"""

__all__ = [
    "RowView",
    "ClassificationRule",
    "build_rules",
    "classify_row",
    "classify_rows",
]

UNDEFINED_TOKEN = "undefined"


def _clean(value: str) -> str:
    value = value.strip()
    return "" if value == UNDEFINED_TOKEN else value


@dataclass(frozen=True)
class RowView:
    """The two cells the rules look at, trimmed, plus the row position."""
    row_index: int
    identifier: str
    name: str

    @property
    def identifier_folded(self) -> str:
        return self.identifier.casefold()

    @property
    def name_folded(self) -> str:
        return self.name.casefold()


@dataclass(frozen=True)
class ClassificationRule:
    reason: str
    outcome: RowClass
    predicate: Callable[[RowView], bool]


def build_rules(cfg: ClassificationConfig) -> list[ClassificationRule]:
    id_tokens = {t.strip().casefold() for t in cfg.header_identifier_tokens}
    name_tokens = {t.strip().casefold() for t in cfg.header_name_tokens}
    marker = cfg.legend_marker.casefold()
    phrases = {p.strip().casefold() for p in cfg.legend_phrases}
    prefixes = tuple(p.strip().casefold() for p in cfg.legend_prefixes)
    limit = cfg.short_phrase_limit

    def short(v: RowView) -> bool:
        return len(v.name_folded) < limit

    # a nameless row is EMPTY even when its identifier is "No." or "Legend"
    rules = [
        ClassificationRule("blank identifier and name", RowClass.EMPTY,
                           lambda v: not v.identifier and not v.name),
        ClassificationRule("missing name", RowClass.EMPTY,
                           lambda v: not v.name),
    ]
    if cfg.first_row_is_header:
        rules.append(ClassificationRule("first row", RowClass.HEADER, lambda v: v.row_index == 0))
    rules += [
        ClassificationRule("header token in identifier", RowClass.HEADER,
                           lambda v: v.identifier_folded in id_tokens),
        ClassificationRule("header token in name", RowClass.HEADER,
                           lambda v: v.name_folded in name_tokens),
        ClassificationRule("legend marker in identifier", RowClass.LEGEND,
                           lambda v: bool(marker) and marker in v.identifier_folded),
        ClassificationRule("legend marker in name", RowClass.LEGEND,
                           lambda v: bool(marker) and marker in v.name_folded),
        ClassificationRule("legend phrase", RowClass.LEGEND,
                           lambda v: short(v) and v.name_folded in phrases),
        ClassificationRule("legend prefix", RowClass.LEGEND,
                           lambda v: short(v) and bool(prefixes) and v.name_folded.startswith(prefixes)),
    ]
    return rules


def classify_row(
    row: Sequence[str],
    row_index: int,
    rules: Sequence[ClassificationRule],
    columns: ColumnMap | None = None,
) -> Classification:
    """Classify one raw row. Pure; never raises for a sequence of strings."""
    columns = columns or resolve_columns(None, DATABASE_LAYOUT)
    view = RowView(
        row_index=row_index,
        identifier=_clean(columns.get(row, "identifier")),
        name=_clean(columns.get(row, "name")),
    )
    for rule in rules:
        if rule.predicate(view):
            return Classification(row_index=row_index, row_class=rule.outcome, reason=rule.reason)
    record = CandidateRecord(
        identifier=view.identifier or None,
        name=view.name,
        row_index=row_index,
        attributes=columns.extract(row, exclude=("identifier", "name")),
    )
    return Classification(row_index=row_index, row_class=RowClass.CANDIDATE, reason="candidate", record=record)


def classify_rows(
    rows: Sequence[Sequence[str]],
    cfg: ClassificationConfig,
    columns: ColumnMap | None = None,
) -> list[Classification]:
    rules = build_rules(cfg)
    return [classify_row(row, i, rules, columns) for i, row in enumerate(rows)]
