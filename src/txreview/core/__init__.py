"""Core module - configuration, database, models and records."""

from txreview.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    ReviewError,
    StoreError,
    ValidationError,
)
from txreview.core.models import (
    BankTransactionRow,
    ModificationLog,
    ModificationType,
    ReviewStatus,
)
from txreview.core.records import BankTransaction

__all__ = [
    "BankTransaction",
    "BankTransactionRow",
    "InvalidTransitionError",
    "ModificationLog",
    "ModificationType",
    "NotFoundError",
    "ReviewError",
    "ReviewStatus",
    "StoreError",
    "ValidationError",
]
