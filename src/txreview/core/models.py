"""SQLAlchemy ORM models for the transaction review store."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from hashlib import sha256
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ReviewStatus(str, Enum):
    """Lifecycle state of a transaction within the review workflow."""

    PENDING = "PENDING"
    EXCLUDED = "EXCLUDED"
    SKIPPED = "SKIPPED"

    @property
    def is_reviewed(self) -> bool:
        return self is not ReviewStatus.PENDING


class ModificationType(str, Enum):
    """Kind of change recorded in the modification log."""

    EXCLUDED = "EXCLUDED"
    SKIPPED = "SKIPPED"
    BUSINESS_PERSONAL_CHANGED = "BUSINESS_PERSONAL_CHANGED"
    RESTORED = "RESTORED"


class BankTransactionRow(Base):
    """Imported bank transaction awaiting review."""

    __tablename__ = "bank_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    business_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Core transaction data
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))

    # Review state
    review_status: Mapped[ReviewStatus] = mapped_column(
        SQLEnum(ReviewStatus), default=ReviewStatus.PENDING, nullable=False
    )
    is_business: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    exclusion_reason: Mapped[Optional[str]] = mapped_column(Text)

    # Deduplication
    transaction_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    modifications: Mapped[list["ModificationLog"]] = relationship(
        back_populates="transaction", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_bank_transactions_business", "business_id"),
        Index("ix_bank_transactions_date", "transaction_date"),
        Index("ix_bank_transactions_hash", "business_id", "transaction_hash"),
        Index("ix_bank_transactions_status", "review_status"),
    )

    def __repr__(self) -> str:
        return f"<BankTransactionRow {self.transaction_date} {self.amount} {self.description[:30]}>"


class ModificationLog(Base):
    """Change history for review status and business flag edits."""

    __tablename__ = "modification_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("bank_transactions.id", ondelete="CASCADE"), nullable=False
    )
    modification_type: Mapped[ModificationType] = mapped_column(
        SQLEnum(ModificationType), nullable=False
    )
    field_name: Mapped[str] = mapped_column(String(50), nullable=False)
    previous_value: Mapped[Optional[str]] = mapped_column(Text)
    new_value: Mapped[Optional[str]] = mapped_column(Text)
    modified_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    transaction: Mapped["BankTransactionRow"] = relationship(back_populates="modifications")

    __table_args__ = (Index("ix_modification_log_transaction", "transaction_id"),)

    def __repr__(self) -> str:
        return f"<ModificationLog {self.transaction_id} {self.modification_type.value}>"


def compute_transaction_hash(
    *,
    transaction_date: datetime | date,
    amount: Decimal,
    description: str,
) -> str:
    """Compute deterministic dedup hash for a transaction payload."""
    normalized_desc = " ".join((description or "").strip().split())
    date_part = (
        transaction_date.date().isoformat()
        if isinstance(transaction_date, datetime)
        else transaction_date.isoformat()
    )
    amount_part = f"{amount:.2f}"
    payload = f"{date_part}|{amount_part}|{normalized_desc.upper()}"
    return sha256(payload.encode("utf-8")).hexdigest()
