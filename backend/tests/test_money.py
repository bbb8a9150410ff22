from decimal import Decimal

import pytest

from pesaflip.core.exceptions import ApiError
from pesaflip.services.money import percent_of, positive_amount, to_money


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(2.675) == Decimal("2.68")
    assert to_money(7) == Decimal("7.00")


@pytest.mark.parametrize("value", ["abc", None, "NaN", "Infinity", "1e30", "-1e18"])
def test_to_money_rejects_values_a_column_cannot_hold(value):
    with pytest.raises(ValueError):
        to_money(value)


@pytest.mark.parametrize("value", [0, "-0.01", "1e30", "junk"])
def test_positive_amount_is_a_bad_request(value):
    with pytest.raises(ApiError) as exc:
        positive_amount(value)
    assert exc.value.status_code == 400
    assert exc.value.message == "Amount must be a positive number"


def test_percent_of():
    assert percent_of(Decimal("1000"), Decimal("16")) == Decimal("160.00")
