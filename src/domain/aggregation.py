from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from .models import Asset, AssetCode, Custodian, Transaction


class AssetList:
    """Running totals per asset code, materialized sorted by code."""

    def __init__(self) -> None:
        self._totals: dict[str, Decimal] = defaultdict(lambda: Decimal(0))

    def add(self, code: str, value: Decimal) -> None:
        self._totals[code] += value

    def add_asset(self, asset: Asset) -> None:
        self.add(asset.code, asset.balance)

    def add_transaction(self, transaction: Transaction) -> None:
        self.add(transaction.asset, transaction.amount)

    def assets(self) -> list[Asset]:
        return [Asset(code=AssetCode(code), balance=total) for code, total in sorted(self._totals.items())]

    def __len__(self) -> int:
        return len(self._totals)


def aggregate_holdings(custodians: Iterable[Custodian]) -> list[Asset]:
    """Total balance per asset code across all given custodians."""
    asset_list = AssetList()
    for custodian in custodians:
        for asset in custodian.assets:
            asset_list.add_asset(asset)
    return asset_list.assets()


def summarize_transactions(transactions: Iterable[Transaction]) -> list[Asset]:
    """Total transacted amount per asset code; direction is not taken into account."""
    asset_list = AssetList()
    for transaction in transactions:
        asset_list.add_transaction(transaction)
    return asset_list.assets()


__all__ = ["AssetList", "aggregate_holdings", "summarize_transactions"]
