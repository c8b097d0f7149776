from datetime import date
from decimal import Decimal

import pytest

from conftest import make_tx
from txreview.core.exceptions import ValidationError
from txreview.core.models import ReviewStatus
from txreview.processing.filters import (
    FilterCriteria,
    filter_transactions,
    matches,
    matches_amount_range,
    matches_date_range,
    matches_search,
    matches_status,
)


def test_matches_search_is_case_insensitive_substring():
    tx = make_tx("AMAZON WEB SERVICES")
    assert matches_search(tx, "amazon") is True
    assert matches_search(tx, "AMAZON") is True
    assert matches_search(tx, "web") is True
    assert matches_search(tx, "netflix") is False


def test_matches_search_blank_matches_all():
    tx = make_tx("Anything")
    assert matches_search(tx, None) is True
    assert matches_search(tx, "") is True
    assert matches_search(tx, "   ") is True


def test_matches_status():
    tx = make_tx(review_status=ReviewStatus.SKIPPED)
    assert matches_status(tx, None) is True
    assert matches_status(tx, ReviewStatus.SKIPPED) is True
    assert matches_status(tx, ReviewStatus.PENDING) is False


def test_matches_date_range_is_inclusive():
    tx = make_tx(day=date(2025, 6, 15))
    assert matches_date_range(tx, date(2025, 6, 1), date(2025, 6, 30)) is True
    assert matches_date_range(tx, date(2025, 6, 15), date(2025, 6, 15)) is True
    assert matches_date_range(tx, date(2025, 7, 1), None) is False
    assert matches_date_range(tx, None, date(2025, 5, 31)) is False
    assert matches_date_range(tx, None, None) is True


def test_matches_amount_range_uses_absolute_value():
    expense = make_tx(amount="-25.00")
    assert matches_amount_range(expense, Decimal("20"), None) is True
    assert matches_amount_range(expense, Decimal("30"), None) is False
    assert matches_amount_range(expense, None, Decimal("25.00")) is True
    assert matches_amount_range(expense, None, Decimal("24.99")) is False


def test_amount_minimum_example():
    ten = make_tx("Ten", amount="10")
    twenty = make_tx("Twenty", amount="20")
    result = filter_transactions([ten, twenty], FilterCriteria(amount_min=Decimal("15")))
    assert result == [twenty]


def test_matches_combines_criteria_with_and():
    tx = make_tx("Train ticket", amount="-45.50", day=date(2025, 6, 10))
    assert matches(tx, FilterCriteria(search_text="train", amount_min=Decimal("40"))) is True
    assert matches(tx, FilterCriteria(search_text="train", amount_min=Decimal("50"))) is False
    assert matches(tx, FilterCriteria(search_text="bus", amount_min=Decimal("40"))) is False


def test_filter_result_is_subset_and_less_restrictive_is_monotonic():
    txs = [
        make_tx("Coffee shop", amount="-3.50"),
        make_tx("Client payment", amount="1200.00"),
        make_tx("Coffee beans", amount="-12.00"),
    ]
    narrow = filter_transactions(txs, FilterCriteria(search_text="coffee", amount_min=Decimal("5")))
    wide = filter_transactions(txs, FilterCriteria(search_text="coffee"))
    everything = filter_transactions(txs, FilterCriteria())

    assert set(narrow) <= set(wide) <= set(txs)
    assert len(narrow) <= len(wide) <= len(everything) == len(txs)


def test_filter_preserves_input_order():
    txs = [make_tx("b"), make_tx("a"), make_tx("c")]
    assert filter_transactions(txs, FilterCriteria()) == txs


def test_validate_rejects_inverted_date_range():
    with pytest.raises(ValidationError):
        FilterCriteria(date_from=date(2025, 7, 1), date_to=date(2025, 6, 1)).validate()


def test_validate_rejects_inverted_amount_range():
    with pytest.raises(ValidationError):
        FilterCriteria(amount_min=Decimal("50"), amount_max=Decimal("10")).validate()


def test_validate_rejects_negative_bounds():
    with pytest.raises(ValidationError):
        FilterCriteria(amount_min=Decimal("-1")).validate()


def test_with_changes_returns_new_validated_criteria():
    base = FilterCriteria(search_text="coffee")
    changed = base.with_changes(status=ReviewStatus.PENDING)
    assert base.status is None
    assert changed == FilterCriteria(search_text="coffee", status=ReviewStatus.PENDING)
    assert changed.is_active is True
    assert FilterCriteria().is_active is False
