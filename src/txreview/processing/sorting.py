"""Sort comparators for the filtered view."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

from txreview.core.records import BankTransaction


class SortField(str, Enum):
    """Column the review list can be ordered by."""

    DATE = "date"
    AMOUNT = "amount"
    DESCRIPTION = "description"


_SORT_KEYS: dict[SortField, Callable[[BankTransaction], Any]] = {
    SortField.DATE: lambda tx: tx.date,
    SortField.AMOUNT: lambda tx: tx.amount,
    # Case-sensitive lexical order
    SortField.DESCRIPTION: lambda tx: tx.description,
}


@dataclass(frozen=True)
class SortSpec:
    field: SortField = SortField.DATE
    ascending: bool = False


DEFAULT_SORT = SortSpec()


def compare(a: BankTransaction, b: BankTransaction, spec: SortSpec) -> int:
    """Return -1, 0 or 1 ordering ``a`` against ``b`` under ``spec``."""
    key = _SORT_KEYS[spec.field]
    ka, kb = key(a), key(b)
    result = (ka > kb) - (ka < kb)
    return result if spec.ascending else -result


def sort_transactions(
    transactions: Iterable[BankTransaction], spec: SortSpec = DEFAULT_SORT
) -> list[BankTransaction]:
    """Stable sort: equal keys keep their input order in either direction."""
    return sorted(transactions, key=_SORT_KEYS[spec.field], reverse=not spec.ascending)
