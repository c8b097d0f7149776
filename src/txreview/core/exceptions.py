"""Error types raised by the review engine and its store adapter."""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for every error the review tool raises on purpose."""


class ValidationError(ReviewError):
    """Input rejected before any snapshot or write happened."""


class InvalidTransitionError(ValidationError):
    """A review status change that the workflow does not allow."""


class StoreError(ReviewError):
    """The persistence layer failed to read or write."""


class NotFoundError(ReviewError):
    """An operation referenced a transaction that is not loaded."""

    def __init__(self, transaction_id: str, message: str | None = None) -> None:
        self.transaction_id = transaction_id
        super().__init__(message or f"Transaction {transaction_id} not found")
