"""Persistence adapter contract consumed by the review engine."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from txreview.core.models import ReviewStatus
from txreview.core.records import BankTransaction


class TransactionStore(ABC):
    """Synchronous façade over the transaction persistence layer.

    Every call either returns plain ``BankTransaction`` records or raises
    ``StoreError`` (I/O failure) or ``NotFoundError`` (unknown id). Mutators
    return the record as stored after the change.
    """

    @abstractmethod
    def find_all(self) -> list[BankTransaction]:
        """Return every transaction in the active scope."""

    @abstractmethod
    def find_by_id(self, transaction_id: str) -> Optional[BankTransaction]:
        """Return one transaction, or None when it does not exist."""

    @abstractmethod
    def save(self, tx: BankTransaction) -> BankTransaction:
        """Insert or overwrite a transaction with exactly the given field values."""

    @abstractmethod
    def exclude(self, transaction_id: str, reason: str, now: datetime) -> BankTransaction:
        """Mark a transaction EXCLUDED with a reason."""

    @abstractmethod
    def skip(self, transaction_id: str, now: datetime) -> BankTransaction:
        """Mark a transaction SKIPPED."""

    @abstractmethod
    def set_business_flag(
        self, transaction_id: str, is_business: Optional[bool], now: datetime
    ) -> BankTransaction:
        """Set (or unset, with None) the business/personal flag."""

    def status_counts(self) -> dict[ReviewStatus, int]:
        """Count transactions per review status."""
        counts = {status: 0 for status in ReviewStatus}
        for tx in self.find_all():
            counts[tx.review_status] += 1
        return counts
