from datetime import datetime

import pytest

from ridepay.errors import InsufficientAmount
from ridepay.service.payment_split import compute_split, compute_increment, required_upfront
from ridepay.utils.email_templates import format_price


def test_split_for_ten_thousand():
    split = compute_split(10000, datetime(2026, 3, 20, 12, 0))

    assert split.upfront_amount == 2500
    assert split.balance_amount == 7500
    assert split.gateway_fee == 330
    assert split.system_commission == 1500
    assert split.driver_earning == 8170
    assert split.balance_due_date == datetime(2026, 3, 18, 12, 0)
    assert split.reminder_dates == {
        "threeDays": datetime(2026, 3, 15, 12, 0),
        "oneDay": datetime(2026, 3, 17, 12, 0),
    }


def test_fractional_shares_round_up_and_earning_takes_the_rest():
    increment = compute_increment(2500)

    # 82.5 -> 83, 375 exact
    assert increment.gateway_fee == 83
    assert increment.system_commission == 375
    assert increment.driver_earning == 2500 - 83 - 375


@pytest.mark.parametrize("total, upfront", [(1, 1), (3, 1), (5, 2), (10001, 2501)])
def test_upfront_is_ceiling_of_a_quarter(total, upfront):
    assert required_upfront(total) == upfront


@pytest.mark.parametrize("total", [1, 7, 99, 12345, 987654])
def test_parts_always_add_up(total):
    split = compute_split(total, datetime(2026, 1, 10))

    assert split.upfront_amount + split.balance_amount == total
    assert split.gateway_fee + split.system_commission + split.driver_earning == total
    assert split.driver_earning >= 0


@pytest.mark.parametrize("total", [0, -500])
def test_non_positive_total_is_rejected(total):
    with pytest.raises(InsufficientAmount):
        compute_split(total, datetime(2026, 1, 10))


def test_format_price():
    assert format_price(125000) == "Rs.125,000"


def test_tiny_amount_never_yields_negative_earning():
    increment = compute_increment(1)

    assert increment.gateway_fee == 1
    assert increment.system_commission == 0
    assert increment.driver_earning == 0
