"""Filter predicates for the review working set.

Each predicate maps a transaction and one criterion to a boolean. An unset
criterion matches everything, and all active criteria are combined with AND.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from txreview.core.exceptions import ValidationError
from txreview.core.models import ReviewStatus
from txreview.core.records import BankTransaction


@dataclass(frozen=True)
class FilterCriteria:
    """Immutable set of filter values; ``None`` means unconstrained."""

    search_text: str = ""
    status: Optional[ReviewStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None

    def validate(self) -> "FilterCriteria":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValidationError(
                f"Date range start {self.date_from} is after end {self.date_to}"
            )
        for name in ("amount_min", "amount_max"):
            bound = getattr(self, name)
            if bound is not None and bound < 0:
                raise ValidationError(f"{name} cannot be negative (compared against absolute amounts)")
        if (
            self.amount_min is not None
            and self.amount_max is not None
            and self.amount_min > self.amount_max
        ):
            raise ValidationError(
                f"Minimum amount {self.amount_min} is greater than maximum {self.amount_max}"
            )
        return self

    def with_changes(self, **changes) -> "FilterCriteria":
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes).validate()

    @property
    def is_active(self) -> bool:
        return self != FilterCriteria()


def matches_search(tx: BankTransaction, search_text: Optional[str]) -> bool:
    if search_text is None or not search_text.strip():
        return True
    return search_text.strip().casefold() in tx.description.casefold()


def matches_status(tx: BankTransaction, status: Optional[ReviewStatus]) -> bool:
    if status is None:
        return True
    return tx.review_status == status


def matches_date_range(
    tx: BankTransaction, date_from: Optional[date], date_to: Optional[date]
) -> bool:
    if date_from is not None and tx.date < date_from:
        return False
    if date_to is not None and tx.date > date_to:
        return False
    return True


def matches_amount_range(
    tx: BankTransaction, amount_min: Optional[Decimal], amount_max: Optional[Decimal]
) -> bool:
    """Compare the absolute amount, so a -25.00 payment passes a 20.00 minimum."""
    amount = tx.absolute_amount
    if amount_min is not None and amount < amount_min:
        return False
    if amount_max is not None and amount > amount_max:
        return False
    return True


def matches(tx: BankTransaction, criteria: FilterCriteria) -> bool:
    """Evaluate every criterion against a transaction (logical AND)."""
    return (
        matches_search(tx, criteria.search_text)
        and matches_status(tx, criteria.status)
        and matches_date_range(tx, criteria.date_from, criteria.date_to)
        and matches_amount_range(tx, criteria.amount_min, criteria.amount_max)
    )


def filter_transactions(
    transactions: Iterable[BankTransaction], criteria: FilterCriteria
) -> list[BankTransaction]:
    """Keep the matching transactions, preserving input order."""
    return [tx for tx in transactions if matches(tx, criteria)]
