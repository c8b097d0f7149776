"""Export helpers for the filtered review view."""

from __future__ import annotations

import csv
import json
import logging
from io import StringIO
from pathlib import Path
from typing import Iterable

from txreview.core.exceptions import StoreError
from txreview.core.records import BankTransaction

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Date",
    "Description",
    "Amount",
    "Status",
    "Business/Personal",
    "Category",
    "Exclusion Reason",
]


def export_transactions_csv(transactions: Iterable[BankTransaction]) -> str:
    """Export transactions to CSV string."""
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for tx in transactions:
        writer.writerow(
            [
                tx.date.isoformat(),
                tx.description,
                format(tx.amount, "f"),
                tx.review_status.value,
                tx.business_label,
                tx.category or "",
                tx.exclusion_reason or "",
            ]
        )
    return output.getvalue()


def export_transactions_json(transactions: Iterable[BankTransaction]) -> str:
    """Export transactions to a JSON array string."""
    return json.dumps([tx.to_dict() for tx in transactions], indent=2, ensure_ascii=False) + "\n"


def _write_text(path: Path, text: str) -> None:
    try:
        Path(path).write_text(text, encoding="utf-8")
    except OSError as e:
        raise StoreError(f"Could not write export to {path}: {e}") from e


def write_csv(path: Path, transactions: Iterable[BankTransaction]) -> int:
    rows = list(transactions)
    _write_text(path, export_transactions_csv(rows))
    logger.info("Exported %d transactions to CSV: %s", len(rows), path)
    return len(rows)


def write_json(path: Path, transactions: Iterable[BankTransaction]) -> int:
    rows = list(transactions)
    _write_text(path, export_transactions_json(rows))
    logger.info("Exported %d transactions to JSON: %s", len(rows), path)
    return len(rows)
