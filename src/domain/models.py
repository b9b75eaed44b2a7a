from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Any, NewType

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    SerializerFunctionWrapHandler,
    field_validator,
    model_serializer,
    model_validator,
)

CustodianId = NewType("CustodianId", int)
TransactionId = NewType("TransactionId", int)
AssetCode = NewType("AssetCode", str)


def plain_decimal(value: Decimal) -> str:
    """Decimal as a string without exponent or trailing zeros, e.g. "10.00000001" or "100000"."""
    return format(value.normalize(), "f")


DecimalString = Annotated[Decimal, PlainSerializer(plain_decimal, return_type=str, when_used="json")]


class Direction(StrEnum):
    IN = "IN"
    OUT = "OUT"


class Asset(BaseModel):
    code: AssetCode
    balance: DecimalString = Decimal(0)


class Transaction(BaseModel):
    """A ledger entry on a single custodian.

    Amounts are always stored as a non-negative magnitude; `direction` tells
    whether the balance went up (IN) or down (OUT). Both related fields are
    unset for external deposits and withdrawals.
    """

    model_config = ConfigDict(frozen=True)

    id: TransactionId = TransactionId(0)
    asset: AssetCode
    amount: DecimalString
    direction: Direction
    related_custodian_id: CustodianId | None = None
    related_custodian_transaction_id: TransactionId | None = None

    @field_validator("related_custodian_id", "related_custodian_transaction_id", mode="before")
    @classmethod
    def _zero_means_unset(cls, value: Any) -> Any:
        if value == 0:
            return None
        return value

    @model_validator(mode="after")
    def _validate_amount(self) -> Transaction:
        if self.amount < 0:
            raise ValueError("Transaction.amount must be >= 0")
        return self

    @model_serializer(mode="wrap")
    def _omit_unset_links(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        for key in ("related_custodian_id", "related_custodian_transaction_id"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class Custodian(BaseModel):
    id: CustodianId = CustodianId(0)
    assets: list[Asset] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_unique_assets(self) -> Custodian:
        codes = [asset.code for asset in self.assets]
        if len(codes) != len(set(codes)):
            raise ValueError(f"Custodian {self.id} holds duplicate asset codes: {sorted(codes)}")
        return self

    @model_validator(mode="after")
    def _validate_transaction_order(self) -> Custodian:
        for previous, current in zip(self.transactions, self.transactions[1:]):
            if current.id <= previous.id:
                raise ValueError(
                    f"Custodian {self.id} transaction IDs must be strictly increasing: {previous.id} then {current.id}"
                )
        return self

    @model_serializer(mode="wrap")
    def _omit_empty_lists(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        if not self.assets:
            data.pop("assets", None)
        if not self.transactions:
            data.pop("transactions", None)
        return data

    def get_asset(self, code: str) -> Asset | None:
        for asset in self.assets:
            if asset.code == code:
                return asset
        return None

    def asset_codes(self) -> set[str]:
        return {asset.code for asset in self.assets}

    def last_transaction_id(self) -> TransactionId:
        return TransactionId(max((transaction.id for transaction in self.transactions), default=0))

    def add_transaction(self, *transactions: Transaction) -> list[Transaction]:
        """Append transactions, numbering them after the highest ID held.

        Returns the stored copies carrying their assigned IDs.
        """
        start_id = self.last_transaction_id()
        added = [
            transaction.model_copy(update={"id": TransactionId(start_id + idx + 1)})
            for idx, transaction in enumerate(transactions)
        ]
        self.transactions.extend(added)
        return added


class User(BaseModel):
    id: int
    custodians: list[CustodianId] = Field(default_factory=list)


__all__ = [
    "Asset",
    "AssetCode",
    "Custodian",
    "CustodianId",
    "DecimalString",
    "Direction",
    "Transaction",
    "TransactionId",
    "User",
    "plain_decimal",
]
