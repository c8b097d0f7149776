"""Fixed-size page windows over the sorted view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from txreview.core.records import BankTransaction

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class Page:
    items: tuple[BankTransaction, ...]
    page_index: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 1
        return -(-self.total_count // self.page_size)

    @property
    def can_go_next(self) -> bool:
        return (self.page_index + 1) * self.page_size < self.total_count

    @property
    def can_go_previous(self) -> bool:
        return self.page_index > 0

    @property
    def first_item_number(self) -> int:
        """1-based position of the first item on the page (0 when empty)."""
        if self.total_count == 0:
            return 0
        return self.page_index * self.page_size + 1

    @property
    def last_item_number(self) -> int:
        return min((self.page_index + 1) * self.page_size, self.total_count)


def clamp_page_index(total_count: int, page_size: int, page_index: int) -> int:
    """Pull an index back into ``[0, last page]``."""
    if total_count == 0 or page_index < 0:
        return 0
    last_page = (total_count - 1) // page_size
    return min(page_index, last_page)


def paginate(items: Sequence[BankTransaction], page_size: int, page_index: int) -> Page:
    """Slice one page out of ``items``; out-of-range indexes clamp to the last page."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    index = clamp_page_index(len(items), page_size, page_index)
    start = index * page_size
    return Page(
        items=tuple(items[start:start + page_size]),
        page_index=index,
        page_size=page_size,
        total_count=len(items),
    )


def result_count_text(page: Page) -> str:
    if page.total_count == 0:
        return "Showing 0 entries"
    return (
        f"Showing {page.first_item_number}–{page.last_item_number} "
        f"of {page.total_count} entries"
    )
