from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict

from .models import AssetCode, Custodian, DecimalString, Direction, Transaction


class TransactionType(IntEnum):
    """Transaction categories; the numeric values are part of the tracker's query string."""

    INVALID = -1
    EXTERNAL_DEPOSIT = 0
    EXTERNAL_WITHDRAWAL = 1
    FOREIGN_TRANSFER = 2
    INTERNAL_ASSET_EXCHANGE = 3


class TransactionClassificationError(Exception):
    def __init__(self, message: str, *, custodian_id: int, transaction_id: int | None = None) -> None:
        super().__init__(message)
        self.custodian_id = custodian_id
        self.transaction_id = transaction_id


class AssetExchange(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_asset: AssetCode
    from_amount: DecimalString
    to_asset: AssetCode
    to_amount: DecimalString


def classify_transaction(custodian: Custodian, transaction: Transaction) -> TransactionType:
    related_custodian_id = transaction.related_custodian_id
    if related_custodian_id is None:
        if transaction.related_custodian_transaction_id is not None:
            return TransactionType.INVALID
        if transaction.direction == Direction.IN:
            return TransactionType.EXTERNAL_DEPOSIT
        return TransactionType.EXTERNAL_WITHDRAWAL

    if related_custodian_id == custodian.id:
        return TransactionType.INTERNAL_ASSET_EXCHANGE
    return TransactionType.FOREIGN_TRANSFER


def filter_transactions_by_type(custodian: Custodian, transaction_type: TransactionType) -> list[Transaction]:
    """Transactions of `custodian` in the given category, in their original order.

    Raises TransactionClassificationError as soon as a transaction fits no category.
    """
    if transaction_type == TransactionType.INVALID:
        raise TransactionClassificationError(
            "Cannot filter transactions by the INVALID category", custodian_id=custodian.id
        )

    matching: list[Transaction] = []
    for transaction in custodian.transactions:
        category = classify_transaction(custodian, transaction)
        if category == TransactionType.INVALID:
            raise TransactionClassificationError(
                f"Transaction {transaction.id} on custodian {custodian.id} fits no category",
                custodian_id=custodian.id,
                transaction_id=transaction.id,
            )
        if category == transaction_type:
            matching.append(transaction)
    return matching


def asset_exchanges(custodian: Custodian) -> list[AssetExchange]:
    """Pair up both legs of every internal asset exchange, ordered by the OUT leg."""
    exchange_legs = filter_transactions_by_type(custodian, TransactionType.INTERNAL_ASSET_EXCHANGE)
    by_id = {transaction.id: transaction for transaction in exchange_legs}

    exchanges: list[AssetExchange] = []
    for outgoing in exchange_legs:
        if outgoing.direction != Direction.OUT:
            continue

        incoming = by_id.get(outgoing.related_custodian_transaction_id)  # type: ignore[arg-type]
        if (
            incoming is None
            or incoming.direction != Direction.IN
            or incoming.related_custodian_transaction_id != outgoing.id
        ):
            raise TransactionClassificationError(
                f"Exchange transaction {outgoing.id} on custodian {custodian.id} has no matching IN leg",
                custodian_id=custodian.id,
                transaction_id=outgoing.id,
            )

        exchanges.append(
            AssetExchange(
                from_asset=outgoing.asset,
                from_amount=outgoing.amount,
                to_asset=incoming.asset,
                to_amount=incoming.amount,
            )
        )
    return exchanges


__all__ = [
    "AssetExchange",
    "TransactionClassificationError",
    "TransactionType",
    "asset_exchanges",
    "classify_transaction",
    "filter_transactions_by_type",
]
