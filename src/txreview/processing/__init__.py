"""Pure filter, sort and pagination functions over transaction records."""

from txreview.processing.filters import FilterCriteria, filter_transactions, matches
from txreview.processing.pagination import Page, paginate, result_count_text
from txreview.processing.sorting import SortField, SortSpec, compare, sort_transactions

__all__ = [
    "FilterCriteria",
    "Page",
    "SortField",
    "SortSpec",
    "compare",
    "filter_transactions",
    "matches",
    "paginate",
    "result_count_text",
    "sort_transactions",
]
