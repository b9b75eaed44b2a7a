from __future__ import annotations

from decimal import Decimal
from typing import Mapping

FOREX_BASE = "BTC"
FOREX_RATES: Mapping[str, Decimal] = {
    "GBP": Decimal("40000.00"),
    "EUR": Decimal("45000.00"),
    "BTC": Decimal("1.00000000"),
    "ETH": Decimal("14.00000000"),
}


class InvalidCurrencyPairError(Exception):
    def __init__(self, pair_from: str, pair_to: str) -> None:
        self.pair_from = pair_from
        self.pair_to = pair_to
        super().__init__(f"Invalid currency pair {pair_from}/{pair_to}")


class ForexTable:
    """Fixed exchange rates, each expressed as units of a currency per one unit of `base`."""

    def __init__(self, *, base: str = FOREX_BASE, rates: Mapping[str, Decimal] | None = None) -> None:
        self.base = base
        self._rates = dict(FOREX_RATES if rates is None else rates)

    def rate(self, pair_from: str, pair_to: str) -> Decimal:
        """Factor converting an amount of `pair_from` into `pair_to`."""
        if pair_from == pair_to:
            return Decimal("1")

        from_rate = self._base_rate(pair_from, pair_from=pair_from, pair_to=pair_to)
        to_rate = self._base_rate(pair_to, pair_from=pair_from, pair_to=pair_to)
        return Decimal("1") / from_rate * to_rate

    def convert(self, amount: Decimal, pair_from: str, pair_to: str) -> Decimal:
        return amount * self.rate(pair_from, pair_to)

    def currencies(self) -> set[str]:
        return {self.base, *self._rates}

    def _base_rate(self, currency: str, *, pair_from: str, pair_to: str) -> Decimal:
        if currency == self.base:
            return Decimal("1")
        try:
            return self._rates[currency]
        except KeyError as exc:
            raise InvalidCurrencyPairError(pair_from, pair_to) from exc


DEFAULT_FOREX_TABLE = ForexTable()


def forex_rate(pair_from: str, pair_to: str) -> Decimal:
    return DEFAULT_FOREX_TABLE.rate(pair_from, pair_to)


__all__ = ["DEFAULT_FOREX_TABLE", "FOREX_BASE", "FOREX_RATES", "ForexTable", "InvalidCurrencyPairError", "forex_rate"]
