from __future__ import annotations

from decimal import Decimal

import pytest

from domain.forex import FOREX_RATES, ForexTable, InvalidCurrencyPairError, forex_rate
from tests.constants import BTC, ETH, EUR, GBP, USD


@pytest.mark.parametrize("code", [BTC, ETH, EUR, GBP, USD])
def test_rate_of_a_currency_against_itself_is_one(code: str) -> None:
    assert forex_rate(code, code) == Decimal("1")


def test_cross_rate_goes_through_the_base() -> None:
    assert forex_rate(GBP, EUR) == Decimal("1.125")
    assert forex_rate(GBP, EUR) == FOREX_RATES[EUR] / FOREX_RATES[GBP]


def test_rates_from_and_to_the_base() -> None:
    assert forex_rate(BTC, GBP) == Decimal("40000")
    assert forex_rate(GBP, BTC) == Decimal("0.000025")
    assert forex_rate(BTC, ETH) == Decimal("14")


def test_unknown_currency_raises_invalid_pair() -> None:
    with pytest.raises(InvalidCurrencyPairError) as exc_info:
        forex_rate(GBP, USD)
    assert exc_info.value.pair_from == GBP
    assert exc_info.value.pair_to == USD

    with pytest.raises(InvalidCurrencyPairError):
        forex_rate(USD, BTC)


def test_custom_table_and_convert() -> None:
    table = ForexTable(base=USD, rates={EUR: Decimal("0.9"), GBP: Decimal("0.8")})

    assert table.rate(USD, EUR) == Decimal("0.9")
    assert table.rate(EUR, GBP) == Decimal("1") / Decimal("0.9") * Decimal("0.8")
    assert table.convert(Decimal("100"), USD, GBP) == Decimal("80.0")
    assert table.currencies() == {USD, EUR, GBP}

    with pytest.raises(InvalidCurrencyPairError):
        table.rate(BTC, USD)
