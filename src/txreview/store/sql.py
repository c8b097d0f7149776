"""SQLAlchemy-backed transaction store."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from txreview.core.exceptions import NotFoundError, StoreError
from txreview.core.models import (
    BankTransactionRow,
    ModificationLog,
    ModificationType,
    ReviewStatus,
)
from txreview.core.records import BankTransaction
from txreview.store.base import TransactionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def row_to_record(row: BankTransactionRow) -> BankTransaction:
    return BankTransaction(
        id=row.id,
        business_id=row.business_id,
        date=row.transaction_date,
        amount=row.amount,
        description=row.description,
        transaction_hash=row.transaction_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
        review_status=row.review_status,
        category=row.category,
        is_business=row.is_business,
        exclusion_reason=row.exclusion_reason,
    )


def _copy_into_row(row: BankTransactionRow, tx: BankTransaction) -> None:
    row.business_id = tx.business_id
    row.transaction_date = tx.date
    row.amount = tx.amount
    row.description = tx.description
    row.category = tx.category
    row.review_status = tx.review_status
    row.is_business = tx.is_business
    row.exclusion_reason = tx.exclusion_reason
    row.transaction_hash = tx.transaction_hash
    row.created_at = tx.created_at
    row.updated_at = tx.updated_at


def _flag_text(value: Optional[bool]) -> Optional[str]:
    return None if value is None else str(value).lower()


class SqlTransactionStore(TransactionStore):
    """Store scoped to one business, committing after every write.

    Database failures roll the session back and surface as ``StoreError``.
    """

    def __init__(self, db: Session, business_id: str) -> None:
        self.db = db
        self.business_id = business_id

    # --- reads -----------------------------------------------------------

    def find_all(self) -> list[BankTransaction]:
        rows = self._run(
            lambda: self.db.query(BankTransactionRow)
            .filter(BankTransactionRow.business_id == self.business_id)
            .order_by(BankTransactionRow.transaction_date, BankTransactionRow.id)
            .all()
        )
        return [row_to_record(row) for row in rows]

    def find_by_id(self, transaction_id: str) -> Optional[BankTransaction]:
        row = self._run(lambda: self._get_row(transaction_id))
        return row_to_record(row) if row is not None else None

    def status_counts(self) -> dict[ReviewStatus, int]:
        results = self._run(
            lambda: self.db.query(BankTransactionRow.review_status, func.count(BankTransactionRow.id))
            .filter(BankTransactionRow.business_id == self.business_id)
            .group_by(BankTransactionRow.review_status)
            .all()
        )
        counts = {status: 0 for status in ReviewStatus}
        for status, count in results:
            counts[status] = count
        return counts

    # --- writes ----------------------------------------------------------

    def save(self, tx: BankTransaction) -> BankTransaction:
        def _save() -> BankTransaction:
            row = self.db.get(BankTransactionRow, tx.id)
            if row is None:
                row = BankTransactionRow(id=tx.id)
                self.db.add(row)
            elif row.review_status != tx.review_status:
                self._log(
                    tx.id,
                    ModificationType.RESTORED,
                    "review_status",
                    row.review_status.value,
                    tx.review_status.value,
                    tx.updated_at,
                )
            _copy_into_row(row, tx)
            self.db.commit()
            return row_to_record(row)

        saved = self._write(_save)
        logger.debug("Saved transaction %s (%s)", saved.id, saved.review_status.value)
        return saved

    def exclude(self, transaction_id: str, reason: str, now: datetime) -> BankTransaction:
        def _exclude() -> BankTransaction:
            row = self._require_row(transaction_id)
            previous = row.review_status
            updated = row_to_record(row).with_excluded(reason, now)
            _copy_into_row(row, updated)
            self._log(
                transaction_id,
                ModificationType.EXCLUDED,
                "review_status",
                previous.value,
                ReviewStatus.EXCLUDED.value,
                now,
            )
            self.db.commit()
            return updated

        updated = self._write(_exclude)
        logger.debug("Excluded transaction %s: %s", transaction_id, reason)
        return updated

    def skip(self, transaction_id: str, now: datetime) -> BankTransaction:
        def _skip() -> BankTransaction:
            row = self._require_row(transaction_id)
            previous = row.review_status
            updated = row_to_record(row).with_skipped(now)
            _copy_into_row(row, updated)
            self._log(
                transaction_id,
                ModificationType.SKIPPED,
                "review_status",
                previous.value,
                ReviewStatus.SKIPPED.value,
                now,
            )
            self.db.commit()
            return updated

        updated = self._write(_skip)
        logger.debug("Skipped transaction %s", transaction_id)
        return updated

    def set_business_flag(
        self, transaction_id: str, is_business: Optional[bool], now: datetime
    ) -> BankTransaction:
        def _flag() -> BankTransaction:
            row = self._require_row(transaction_id)
            previous = row.is_business
            updated = row_to_record(row).with_business_flag(is_business, now)
            _copy_into_row(row, updated)
            self._log(
                transaction_id,
                ModificationType.BUSINESS_PERSONAL_CHANGED,
                "is_business",
                _flag_text(previous),
                _flag_text(is_business),
                now,
            )
            self.db.commit()
            return updated

        updated = self._write(_flag)
        logger.debug("Set business flag on %s to %s", transaction_id, is_business)
        return updated

    def modification_history(self, transaction_id: str) -> list[ModificationLog]:
        """Return the logged changes for a transaction, oldest first."""
        return self._run(
            lambda: self.db.query(ModificationLog)
            .filter(ModificationLog.transaction_id == transaction_id)
            .order_by(ModificationLog.id)
            .all()
        )

    # --- helpers ---------------------------------------------------------

    def _get_row(self, transaction_id: str) -> Optional[BankTransactionRow]:
        row = self.db.get(BankTransactionRow, transaction_id)
        if row is None or row.business_id != self.business_id:
            return None
        return row

    def _require_row(self, transaction_id: str) -> BankTransactionRow:
        row = self._get_row(transaction_id)
        if row is None:
            raise NotFoundError(transaction_id)
        return row

    def _log(
        self,
        transaction_id: str,
        modification_type: ModificationType,
        field_name: str,
        previous_value: Optional[str],
        new_value: Optional[str],
        now: datetime,
    ) -> None:
        self.db.add(
            ModificationLog(
                transaction_id=transaction_id,
                modification_type=modification_type,
                field_name=field_name,
                previous_value=previous_value,
                new_value=new_value,
                modified_at=now,
            )
        )

    def _run(self, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as e:
            raise StoreError(f"Database read failed: {e}") from e

    def _write(self, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Database write failed: {e}") from e
        except Exception:
            # Nothing from a rejected change may stay pending in the session.
            self.db.rollback()
            raise
