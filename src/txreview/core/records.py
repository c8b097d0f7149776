"""Plain transaction records handed out by the store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from txreview.core.exceptions import InvalidTransitionError, ValidationError
from txreview.core.models import ReviewStatus, compute_transaction_hash


@dataclass(frozen=True)
class BankTransaction:
    """Imported bank transaction in the review workflow.

    State machine: PENDING -> EXCLUDED | SKIPPED. Going back to PENDING only
    happens by restoring an earlier copy of the record (undo).
    """

    # Required fields
    id: str
    business_id: str
    date: date
    amount: Decimal
    description: str
    transaction_hash: str
    created_at: datetime
    updated_at: datetime

    # Review fields
    review_status: ReviewStatus = ReviewStatus.PENDING
    category: Optional[str] = None
    is_business: Optional[bool] = None
    exclusion_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError("amount must be a Decimal")
        if not (self.description or "").strip():
            raise ValidationError("description cannot be empty")
        if self.exclusion_reason is not None and self.review_status is not ReviewStatus.EXCLUDED:
            raise ValidationError("exclusion_reason is only allowed on EXCLUDED transactions")

    @classmethod
    def create(
        cls,
        *,
        business_id: str,
        date: date,
        amount: Decimal,
        description: str,
        now: datetime,
        category: Optional[str] = None,
    ) -> "BankTransaction":
        """Create a new PENDING transaction, as produced by an import."""
        return cls(
            id=str(uuid.uuid4()),
            business_id=business_id,
            date=date,
            amount=amount,
            description=description,
            transaction_hash=compute_transaction_hash(
                transaction_date=date, amount=amount, description=description
            ),
            created_at=now,
            updated_at=now,
            category=category,
        )

    @property
    def absolute_amount(self) -> Decimal:
        return abs(self.amount)

    @property
    def is_reviewed(self) -> bool:
        return self.review_status.is_reviewed

    @property
    def business_label(self) -> str:
        if self.is_business is None:
            return "—"
        return "Business" if self.is_business else "Personal"

    def with_excluded(self, reason: str, now: datetime) -> "BankTransaction":
        if not (reason or "").strip():
            raise ValidationError("Exclusion reason cannot be blank")
        self._require_pending("exclude")
        return replace(
            self,
            review_status=ReviewStatus.EXCLUDED,
            exclusion_reason=reason.strip(),
            updated_at=now,
        )

    def with_skipped(self, now: datetime) -> "BankTransaction":
        self._require_pending("skip")
        return replace(self, review_status=ReviewStatus.SKIPPED, updated_at=now)

    def with_business_flag(self, is_business: Optional[bool], now: datetime) -> "BankTransaction":
        return replace(self, is_business=is_business, updated_at=now)

    def _require_pending(self, action: str) -> None:
        if self.review_status is not ReviewStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot {action} transaction {self.id}: status is {self.review_status.value}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary for export."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": format(self.amount, "f"),
            "status": self.review_status.value,
            "isBusiness": self.is_business,
            "category": self.category,
            "exclusionReason": self.exclusion_reason,
        }
