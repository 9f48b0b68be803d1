"""expense-split - Split shared expenses and validate who owes what."""

__version__ = "0.1.0"

from .assembler import ExpenseAssembler, compute_record_fingerprint
from .config import Settings, load_settings
from .engine import compute_shares, to_minor_units
from .models import (
    ExpenseInput,
    ExpenseRecord,
    Group,
    Participant,
    ShareLine,
    SplitStrategy,
)
from .service import ExpenseService, ExpenseStore, navigation_target
from .validator import validate_split

__all__ = [
    "Settings",
    "load_settings",
    "ExpenseAssembler",
    "compute_record_fingerprint",
    "compute_shares",
    "to_minor_units",
    "validate_split",
    "ExpenseInput",
    "ExpenseRecord",
    "Group",
    "Participant",
    "ShareLine",
    "SplitStrategy",
    "ExpenseService",
    "ExpenseStore",
    "navigation_target",
]
