"""Import bank statement CSV files into the review store."""

from __future__ import annotations

import csv
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dateutil import parser as date_parser
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from txreview.core.exceptions import StoreError
from txreview.core.models import BankTransactionRow, ReviewStatus, compute_transaction_hash

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("Date", "Description", "Amount")


@dataclass
class ImportResult:
    """Outcome of importing one CSV file."""

    file_path: Path
    created: int = 0
    duplicates: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


def _parse_amount(value: str) -> Decimal:
    """Parse '£1,234.50', '-45.00' or '(45.00)' into a Decimal."""
    text = (value or "").strip().replace(",", "").replace("£", "")
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    amount = Decimal(text)
    if not amount.is_finite():
        raise ValueError(f"amount {value!r} is not a finite number")
    return -amount if negative else amount


def _existing_hashes(db: Session, business_id: str) -> set[str]:
    rows = (
        db.query(BankTransactionRow.transaction_hash)
        .filter(BankTransactionRow.business_id == business_id)
        .all()
    )
    return {h for (h,) in rows}


def import_bank_csv(db: Session, *, file_path: Path, business_id: str) -> ImportResult:
    """Persist rows of a ``Date,Description,Amount[,Category]`` CSV as PENDING transactions.

    Rows whose dedup hash already exists for the business are skipped.
    Unparseable rows are reported in ``errors`` and the rest still import.
    """
    result = ImportResult(file_path=file_path)
    seen = _existing_hashes(db, business_id)
    now = datetime.now(UTC).replace(tzinfo=None)

    with open(file_path, newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            result.errors.append(f"Missing columns: {', '.join(missing)}")
            return result

        for line_number, record in enumerate(reader, start=2):
            description = " ".join((record.get("Description") or "").split())
            try:
                tx_date = date_parser.parse(record["Date"], dayfirst=True).date()
                amount = _parse_amount(record["Amount"])
            except (TypeError, ValueError, OverflowError, InvalidOperation) as e:
                result.errors.append(f"Line {line_number}: {e}")
                continue
            if not description:
                result.errors.append(f"Line {line_number}: empty description")
                continue

            tx_hash = compute_transaction_hash(
                transaction_date=tx_date, amount=amount, description=description
            )
            if tx_hash in seen:
                result.duplicates += 1
                continue
            seen.add(tx_hash)

            db.add(
                BankTransactionRow(
                    id=str(uuid.uuid4()),
                    business_id=business_id,
                    transaction_date=tx_date,
                    amount=amount,
                    description=description,
                    category=(record.get("Category") or "").strip() or None,
                    review_status=ReviewStatus.PENDING,
                    transaction_hash=tx_hash,
                    created_at=now,
                    updated_at=now,
                )
            )
            result.created += 1

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Could not save transactions from {file_path}: {e}") from e
    logger.info(
        "Imported %s: %d created, %d duplicates, %d errors",
        file_path,
        result.created,
        result.duplicates,
        len(result.errors),
    )
    return result
