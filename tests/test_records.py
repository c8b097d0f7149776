from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from conftest import make_tx
from txreview.core.exceptions import InvalidTransitionError, ValidationError
from txreview.core.models import ReviewStatus, compute_transaction_hash

NOW = datetime(2025, 8, 1, 12, 0, 0)


def test_create_starts_pending_with_hash():
    tx = make_tx("Client payment", amount="250.00")
    assert tx.review_status is ReviewStatus.PENDING
    assert tx.is_business is None
    assert tx.exclusion_reason is None
    assert tx.transaction_hash == compute_transaction_hash(
        transaction_date=tx.date, amount=Decimal("250.00"), description="Client payment"
    )


def test_absolute_amount_drops_sign():
    assert make_tx(amount="-45.50").absolute_amount == Decimal("45.50")


def test_with_excluded_sets_reason_and_status():
    tx = make_tx().with_excluded("  Transfer  ", NOW)
    assert tx.review_status is ReviewStatus.EXCLUDED
    assert tx.exclusion_reason == "Transfer"
    assert tx.updated_at == NOW


def test_with_excluded_requires_reason():
    with pytest.raises(ValidationError):
        make_tx().with_excluded("   ", NOW)


def test_only_pending_can_be_excluded_or_skipped():
    skipped = make_tx().with_skipped(NOW)
    with pytest.raises(InvalidTransitionError):
        skipped.with_excluded("Transfer", NOW)
    with pytest.raises(InvalidTransitionError):
        skipped.with_skipped(NOW)


def test_business_flag_keeps_status():
    tx = make_tx().with_skipped(NOW).with_business_flag(True, NOW)
    assert tx.review_status is ReviewStatus.SKIPPED
    assert tx.is_business is True
    assert tx.business_label == "Business"
    assert tx.with_business_flag(False, NOW).business_label == "Personal"
    assert tx.with_business_flag(None, NOW).business_label == "—"


def test_amount_must_be_decimal():
    with pytest.raises(ValidationError):
        replace(make_tx(), amount=10.5)


def test_to_dict_is_json_safe():
    tx = make_tx("Train", amount="-45.50").with_excluded("Personal travel", NOW)
    data = tx.to_dict()
    assert data["date"] == "2025-06-15"
    assert data["amount"] == "-45.50"
    assert data["status"] == "EXCLUDED"
    assert data["exclusionReason"] == "Personal travel"
    assert data["isBusiness"] is None
