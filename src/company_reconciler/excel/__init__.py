from .ranges import RangeError, RangeRef, cell_ref
from .store import MissingSourceError, ReconcileError, StoreUnavailableError, WorkbookStore, locate_sheet
from .writer import CellUpdate, WriteResult

__all__ = [
    "CellUpdate",
    "MissingSourceError",
    "RangeError",
    "RangeRef",
    "ReconcileError",
    "StoreUnavailableError",
    "WorkbookStore",
    "WriteResult",
    "cell_ref",
    "locate_sheet",
]
