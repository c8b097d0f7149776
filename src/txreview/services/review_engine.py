"""Transaction review engine.

Owns the in-memory working set for one review session and keeps the derived
state consistent: filtered view -> sorted view -> page window, plus the
selection (scoped to the filtered view) and a single-level undo snapshot.

Every public operation recomputes the pipeline before returning and hands
back an immutable ``ReviewView``; callers decide how to observe changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

from txreview.core.config import settings
from txreview.core.exceptions import NotFoundError, ReviewError, StoreError, ValidationError
from txreview.core.models import ReviewStatus
from txreview.core.records import BankTransaction
from txreview.processing.filters import FilterCriteria, filter_transactions
from txreview.processing.pagination import Page, clamp_page_index, paginate, result_count_text
from txreview.processing.sorting import DEFAULT_SORT, SortField, SortSpec, sort_transactions
from txreview.services.export_service import write_csv, write_json
from txreview.services.selection import SelectionTracker
from txreview.services.undo import UndoManager
from txreview.store.base import TransactionStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass(frozen=True)
class ReviewView:
    """Snapshot of everything the UI layer reads from the engine."""

    all_items: tuple[BankTransaction, ...]
    filtered_items: tuple[BankTransaction, ...]
    page: Page
    criteria: FilterCriteria
    sort: SortSpec
    selected_ids: frozenset[str]
    can_undo: bool
    undo_label: Optional[str]
    total_count: int
    pending_count: int
    excluded_count: int
    skipped_count: int

    @property
    def reviewed_count(self) -> int:
        return self.total_count - self.pending_count

    @property
    def review_progress(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.reviewed_count / self.total_count

    @property
    def current_page_items(self) -> tuple[BankTransaction, ...]:
        return self.page.items

    @property
    def selected_count(self) -> int:
        return len(self.selected_ids)

    @property
    def is_empty_state(self) -> bool:
        return self.total_count == 0

    @property
    def is_no_results(self) -> bool:
        return self.total_count > 0 and not self.filtered_items

    @property
    def result_count_text(self) -> str:
        return result_count_text(self.page)

    @property
    def can_go_next(self) -> bool:
        return self.page.can_go_next

    @property
    def can_go_previous(self) -> bool:
        return self.page.can_go_previous


class ReviewEngine:
    """Filter, sort, page, select and bulk-classify a loaded set of transactions."""

    def __init__(
        self,
        store: TransactionStore,
        page_size: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        page_size = settings.PAGE_SIZE if page_size is None else page_size
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.store = store
        self.page_size = page_size
        self.clock = clock

        self._items: list[BankTransaction] = []
        self._positions: dict[str, int] = {}
        self._filtered: tuple[BankTransaction, ...] = ()
        self._criteria = FilterCriteria()
        self._sort = DEFAULT_SORT
        self._page_index = 0
        self._selection = SelectionTracker()
        self._undo = UndoManager()
        self._view = self._build_view()

    # === Data Loading ===

    def load(self) -> ReviewView:
        """Replace the working set with everything the store holds for the active scope."""
        transactions = self.store.find_all()
        self._items = list(transactions)
        self._positions = {tx.id: i for i, tx in enumerate(self._items)}
        self._selection.clear()
        self._undo.clear()
        self._recompute(reset_page=True)
        logger.info("Loaded %d bank transactions for review", len(self._items))
        return self._view

    # === Filtering & Sorting ===

    def set_filter(self, criteria: FilterCriteria) -> ReviewView:
        self._criteria = criteria.validate()
        return self._recompute(reset_page=True)

    def set_search_text(self, text: Optional[str]) -> ReviewView:
        return self.set_filter(self._criteria.with_changes(search_text=text or ""))

    def set_status_filter(self, status: Optional[ReviewStatus]) -> ReviewView:
        return self.set_filter(self._criteria.with_changes(status=status))

    def set_date_range(self, date_from: Optional[date], date_to: Optional[date]) -> ReviewView:
        return self.set_filter(self._criteria.with_changes(date_from=date_from, date_to=date_to))

    def set_amount_range(
        self, amount_min: Optional[Decimal], amount_max: Optional[Decimal] = None
    ) -> ReviewView:
        return self.set_filter(
            self._criteria.with_changes(amount_min=amount_min, amount_max=amount_max)
        )

    def clear_filters(self) -> ReviewView:
        return self.set_filter(FilterCriteria())

    def set_sort(self, spec: SortSpec) -> ReviewView:
        self._sort = spec
        return self._recompute(reset_page=True)

    def sort_by(self, field: SortField, ascending: bool = False) -> ReviewView:
        return self.set_sort(SortSpec(field=SortField(field), ascending=ascending))

    # === Pagination ===

    def next_page(self) -> ReviewView:
        if self._view.can_go_next:
            self._page_index += 1
        return self._recompute_page()

    def previous_page(self) -> ReviewView:
        if self._view.can_go_previous:
            self._page_index -= 1
        return self._recompute_page()

    def go_to_page(self, page_index: int) -> ReviewView:
        self._page_index = clamp_page_index(len(self._filtered), self.page_size, page_index)
        return self._recompute_page()

    # === Selection ===

    def toggle_selection(self, transaction_id: str) -> ReviewView:
        if not self._selection.toggle(transaction_id):
            logger.debug("Ignoring selection of %s: not in the filtered view", transaction_id)
        return self._publish()

    def select_all(self) -> ReviewView:
        self._selection.select_all()
        return self._publish()

    def select_all_pending(self) -> ReviewView:
        self._selection.select_all_pending()
        return self._publish()

    def clear_selection(self) -> ReviewView:
        self._selection.clear()
        return self._publish()

    def is_selected(self, transaction_id: str) -> bool:
        return self._selection.is_selected(transaction_id)

    # === Individual Operations ===

    def exclude(self, transaction_id: str, reason: str) -> ReviewView:
        """Exclude one transaction from the tax calculation. The reason is mandatory."""
        reason = self._require_reason(reason)
        before = self._require(transaction_id)
        now = self.clock()
        # Reject illegal transitions before touching the store.
        before.with_excluded(reason, now)
        updated = self.store.exclude(transaction_id, reason, now)
        return self._commit_single("exclude", before, updated)

    def skip(self, transaction_id: str) -> ReviewView:
        before = self._require(transaction_id)
        now = self.clock()
        before.with_skipped(now)  # raises on illegal transition
        updated = self.store.skip(transaction_id, now)
        return self._commit_single("skip", before, updated)

    def toggle_business_flag(self, transaction_id: str, is_business: Optional[bool]) -> ReviewView:
        """Set the business/personal flag without touching the review status."""
        before = self._require(transaction_id)
        updated = self.store.set_business_flag(transaction_id, is_business, self.clock())
        return self._commit_single("set business flag", before, updated)

    # === Batch Operations ===

    def batch_mark_business(self) -> ReviewView:
        now = self.clock()
        return self._run_batch(
            "mark business",
            self._selection.ordered_ids(),
            lambda tx_id: self.store.set_business_flag(tx_id, True, now),
        )

    def batch_mark_personal(self) -> ReviewView:
        now = self.clock()
        return self._run_batch(
            "mark personal",
            self._selection.ordered_ids(),
            lambda tx_id: self.store.set_business_flag(tx_id, False, now),
        )

    def batch_exclude(self, reason: str) -> ReviewView:
        """Exclude the PENDING members of the selection; reviewed ones are left as they are."""
        selected = self._selection.ordered_ids()
        if not selected:
            return self._view
        reason = self._require_reason(reason)
        targets = [
            tx_id for tx_id in selected
            if self._require(tx_id).review_status is ReviewStatus.PENDING
        ]
        if len(targets) < len(selected):
            logger.info(
                "Batch exclude: leaving %d already reviewed transactions unchanged",
                len(selected) - len(targets),
            )
        now = self.clock()
        return self._run_batch(
            "exclude",
            targets,
            lambda tx_id: self.store.exclude(tx_id, reason, now),
        )

    # === Undo ===

    def can_undo(self) -> bool:
        return self._undo.can_undo()

    def undo(self) -> ReviewView:
        """Write the snapshotted records back to the store, then drop the snapshot.

        The snapshot is cleared even when a restore write fails; the first
        failure is re-raised after the remaining records have been attempted.
        """
        snapshot = self._undo.consume()
        if snapshot is None:
            return self._view

        failures: list[StoreError] = []
        for record in snapshot.records:
            try:
                restored = self.store.save(record)
            except StoreError as e:
                logger.warning("Undo could not restore transaction %s: %s", record.id, e)
                failures.append(e)
                continue
            self._replace(restored)

        self._recompute(reset_page=False)
        if failures:
            raise failures[0]
        logger.info("Undo completed - restored %d transactions (%s)", len(snapshot.records), snapshot.label)
        return self._view

    # === Export ===

    def export_csv(self, path: Path) -> int:
        """Write the whole filtered view (not just the current page) as CSV."""
        return write_csv(path, self._filtered)

    def export_json(self, path: Path) -> int:
        return write_json(path, self._filtered)

    # === Read model ===

    def view(self) -> ReviewView:
        return self._view

    @property
    def all_items(self) -> tuple[BankTransaction, ...]:
        return self._view.all_items

    @property
    def filtered_items(self) -> tuple[BankTransaction, ...]:
        return self._view.filtered_items

    @property
    def current_page_items(self) -> tuple[BankTransaction, ...]:
        return self._view.current_page_items

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def sort(self) -> SortSpec:
        return self._sort

    @property
    def page_index(self) -> int:
        return self._page_index

    @property
    def selected_count(self) -> int:
        return self._selection.count()

    @property
    def total_count(self) -> int:
        return self._view.total_count

    @property
    def pending_count(self) -> int:
        return self._view.pending_count

    @property
    def excluded_count(self) -> int:
        return self._view.excluded_count

    @property
    def reviewed_count(self) -> int:
        return self._view.reviewed_count

    @property
    def review_progress(self) -> float:
        return self._view.review_progress

    @property
    def is_empty_state(self) -> bool:
        return self._view.is_empty_state

    @property
    def is_no_results(self) -> bool:
        return self._view.is_no_results

    @property
    def result_count_text(self) -> str:
        return self._view.result_count_text

    # === Internals ===

    def _require(self, transaction_id: str) -> BankTransaction:
        position = self._positions.get(transaction_id)
        if position is None:
            raise NotFoundError(transaction_id, f"Transaction {transaction_id} is not in the working set")
        return self._items[position]

    @staticmethod
    def _require_reason(reason: Optional[str]) -> str:
        if reason is None or not reason.strip():
            raise ValidationError("Exclusion reason cannot be blank")
        return reason.strip()

    def _replace(self, updated: BankTransaction) -> None:
        self._items[self._positions[updated.id]] = updated

    def _commit_single(
        self, label: str, before: BankTransaction, updated: BankTransaction
    ) -> ReviewView:
        self._undo.snapshot(before, label=f"{label} {before.description}")
        self._replace(updated)
        return self._recompute(reset_page=False)

    def _run_batch(
        self,
        label: str,
        transaction_ids: list[str],
        write: Callable[[str], BankTransaction],
    ) -> ReviewView:
        if not transaction_ids:
            return self._view

        mutated: list[BankTransaction] = []
        try:
            for tx_id in transaction_ids:
                before = self._require(tx_id)
                updated = write(tx_id)
                mutated.append(before)
                self._replace(updated)
        except ReviewError:
            if mutated:
                self._undo.snapshot(mutated, label=f"{label} {len(mutated)} transactions (partial)")
                self._selection.discard(tx.id for tx in mutated)
            logger.warning(
                "Batch %s stopped after %d of %d transactions",
                label,
                len(mutated),
                len(transaction_ids),
            )
            self._recompute(reset_page=False)
            raise

        self._undo.snapshot(mutated, label=f"{label} {len(mutated)} transactions")
        self._selection.clear()
        logger.info("Batch %s applied to %d transactions", label, len(mutated))
        return self._recompute(reset_page=False)

    def _recompute(self, reset_page: bool) -> ReviewView:
        filtered = filter_transactions(self._items, self._criteria)
        self._filtered = tuple(sort_transactions(filtered, self._sort))
        dropped = self._selection.rescope(self._filtered)
        if dropped:
            logger.debug("Dropped %d selections outside the filtered view", dropped)
        if reset_page:
            self._page_index = 0
        return self._recompute_page()

    def _recompute_page(self) -> ReviewView:
        self._page_index = clamp_page_index(len(self._filtered), self.page_size, self._page_index)
        return self._publish()

    def _publish(self) -> ReviewView:
        self._view = self._build_view()
        return self._view

    def _build_view(self) -> ReviewView:
        counts = {status: 0 for status in ReviewStatus}
        for tx in self._items:
            counts[tx.review_status] += 1
        return ReviewView(
            all_items=tuple(self._items),
            filtered_items=self._filtered,
            page=paginate(self._filtered, self.page_size, self._page_index),
            criteria=self._criteria,
            sort=self._sort,
            selected_ids=self._selection.selected_ids(),
            can_undo=self._undo.can_undo(),
            undo_label=self._undo.label,
            total_count=len(self._items),
            pending_count=counts[ReviewStatus.PENDING],
            excluded_count=counts[ReviewStatus.EXCLUDED],
            skipped_count=counts[ReviewStatus.SKIPPED],
        )
