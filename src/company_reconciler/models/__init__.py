"""Domain models for the company reconciler.

Row classification outcomes, the tracker projection, analytical views and
configuration dataclasses used throughout the application.
"""

from .analysis import ContactSummary, DuplicateGroup, DuplicateMember, IdChange, IdentifierGapReport
from .config_models import (
    ClassificationConfig,
    ColumnOverrides,
    IdentifierConfig,
    ProjectionConfig,
    ReconcilerConfig,
    StatusMigrationConfig,
    WorkbookConfig,
)
from .row_data import CandidateRecord, Classification, RawRow, RowClass
from .tracker_record import TrackerRecord

__all__ = [
    # Configuration models
    "ClassificationConfig",
    "ColumnOverrides",
    "IdentifierConfig",
    "ProjectionConfig",
    "ReconcilerConfig",
    "StatusMigrationConfig",
    "WorkbookConfig",
    # Row models
    "CandidateRecord",
    "Classification",
    "RawRow",
    "RowClass",
    # Projection / analysis models
    "TrackerRecord",
    "ContactSummary",
    "DuplicateGroup",
    "DuplicateMember",
    "IdChange",
    "IdentifierGapReport",
]
