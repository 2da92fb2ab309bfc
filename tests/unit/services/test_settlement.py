from __future__ import annotations

from decimal import Decimal

import pytest

from commissions.core.exceptions import InvalidPercentageError, ValidationError
from commissions.services.settlement import compute_settlement, round2
from commissions.services.settlement_service import quote_settlement


def test_settlement_splits_order_total():
    split = compute_settlement(Decimal("1000"), Decimal("15"))
    assert split.commission_amount == Decimal("150.00")
    assert split.net_amount == Decimal("850.00")


def test_settlement_rounds_half_up_to_cents():
    split = compute_settlement("999.99", "12.5")
    assert split.commission_amount == Decimal("125.00")
    assert split.net_amount == Decimal("874.99")


def test_zero_percentage_keeps_full_total():
    split = compute_settlement("250.555", 0)
    assert split.commission_amount == Decimal("0.00")
    assert split.net_amount == Decimal("250.56")


def test_commission_and_net_add_up_to_rounded_total():
    for total, pct in (("19.99", "7.5"), ("0.01", "50"), ("1234.56", "33.33")):
        split = compute_settlement(total, pct)
        assert split.commission_amount + split.net_amount == round2(Decimal(total))


def test_round2_rounds_half_away_from_zero():
    assert round2(Decimal("0.125")) == Decimal("0.13")
    assert round2(Decimal("2.675")) == Decimal("2.68")


def test_quote_rejects_out_of_range_inputs():
    with pytest.raises(InvalidPercentageError):
        quote_settlement("100", "101")
    with pytest.raises(ValidationError):
        quote_settlement("-1", "10")
    with pytest.raises(ValidationError):
        quote_settlement("ten", "10")
