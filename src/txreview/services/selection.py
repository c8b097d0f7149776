"""Multi-select state scoped to the filtered view."""

from __future__ import annotations

from typing import Iterable

from txreview.core.models import ReviewStatus
from txreview.core.records import BankTransaction


class SelectionTracker:
    """Set of selected transaction ids, always a subset of the visible (filtered) ids.

    ``rescope`` is called with the new filtered view after every recomputation
    and drops any selected id that is no longer visible.
    """

    def __init__(self) -> None:
        self._visible: dict[str, BankTransaction] = {}
        self._selected: set[str] = set()

    def rescope(self, filtered: Iterable[BankTransaction]) -> int:
        """Adopt a new filtered view; returns how many selections were dropped."""
        self._visible = {tx.id: tx for tx in filtered}
        before = len(self._selected)
        self._selected.intersection_update(self._visible)
        return before - len(self._selected)

    def toggle(self, transaction_id: str) -> bool:
        """Flip selection of a visible id. Ids outside the filtered view are ignored."""
        if transaction_id not in self._visible:
            return False
        if transaction_id in self._selected:
            self._selected.discard(transaction_id)
        else:
            self._selected.add(transaction_id)
        return True

    def select_all(self) -> None:
        self._selected = set(self._visible)

    def select_all_pending(self) -> None:
        self._selected = {
            tx_id
            for tx_id, tx in self._visible.items()
            if tx.review_status is ReviewStatus.PENDING
        }

    def clear(self) -> None:
        self._selected.clear()

    def discard(self, transaction_ids: Iterable[str]) -> None:
        self._selected.difference_update(transaction_ids)

    def is_selected(self, transaction_id: str) -> bool:
        return transaction_id in self._selected

    def count(self) -> int:
        return len(self._selected)

    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    def ordered_ids(self) -> list[str]:
        """Selected ids in filtered-view order, for deterministic batch writes."""
        return [tx_id for tx_id in self._visible if tx_id in self._selected]
