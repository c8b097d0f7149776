from datetime import date

from conftest import make_tx
from txreview.processing.sorting import SortField, SortSpec, compare, sort_transactions


def _descriptions(txs):
    return [tx.description for tx in txs]


def test_default_sort_is_date_descending():
    old = make_tx("old", day=date(2025, 1, 1))
    new = make_tx("new", day=date(2025, 3, 1))
    mid = make_tx("mid", day=date(2025, 2, 1))
    assert _descriptions(sort_transactions([old, new, mid])) == ["new", "mid", "old"]


def test_sort_by_amount_uses_signed_value():
    txs = [make_tx("a", amount="-50"), make_tx("b", amount="10"), make_tx("c", amount="0")]
    result = sort_transactions(txs, SortSpec(SortField.AMOUNT, ascending=True))
    assert _descriptions(result) == ["a", "c", "b"]


def test_sort_by_description_is_case_sensitive():
    txs = [make_tx("apple"), make_tx("Banana"), make_tx("cherry")]
    result = sort_transactions(txs, SortSpec(SortField.DESCRIPTION, ascending=True))
    # Uppercase sorts before lowercase in code-point order
    assert _descriptions(result) == ["Banana", "apple", "cherry"]


def test_sort_is_stable_in_both_directions():
    same_day = date(2025, 6, 1)
    txs = [make_tx(name, day=same_day) for name in ("first", "second", "third")]

    ascending = sort_transactions(txs, SortSpec(SortField.DATE, ascending=True))
    descending = sort_transactions(txs, SortSpec(SortField.DATE, ascending=False))

    assert _descriptions(ascending) == ["first", "second", "third"]
    assert _descriptions(descending) == ["first", "second", "third"]


def test_sort_is_idempotent():
    txs = [
        make_tx("x", amount="5"),
        make_tx("y", amount="5"),
        make_tx("z", amount="1"),
        make_tx("w", amount="9"),
    ]
    spec = SortSpec(SortField.AMOUNT, ascending=False)
    once = sort_transactions(txs, spec)
    assert sort_transactions(once, spec) == once


def test_compare_respects_direction():
    small = make_tx("small", amount="1")
    large = make_tx("large", amount="2")
    asc = SortSpec(SortField.AMOUNT, ascending=True)
    desc = SortSpec(SortField.AMOUNT, ascending=False)

    assert compare(small, large, asc) == -1
    assert compare(large, small, asc) == 1
    assert compare(small, large, desc) == 1
    assert compare(small, small, desc) == 0
