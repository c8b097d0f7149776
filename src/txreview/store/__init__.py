"""Persistence adapters for bank transactions."""

from txreview.store.base import TransactionStore
from txreview.store.sql import SqlTransactionStore

__all__ = ["SqlTransactionStore", "TransactionStore"]
