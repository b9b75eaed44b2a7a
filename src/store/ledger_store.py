from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from pathlib import Path
from random import Random
from typing import Sequence

from domain.forex import DEFAULT_FOREX_TABLE, ForexTable
from domain.models import Asset, Custodian, CustodianId, Direction, Transaction, TransactionId

from .locking import ReadWriteLock
from .snapshot import SnapshotError, dump_custodians, load_custodians

logger = logging.getLogger(__name__)

TWO_LEG_PERCENT = 60
MAX_AMOUNT_PERCENT = 20
DEPOSIT_MULTIPLIER = Decimal(4)
BALANCE_QUANTUM = Decimal("0.00000001")


class LedgerStoreError(Exception):
    pass


class NoCounterpartyError(LedgerStoreError):
    def __init__(self, *, custodian_id: int, asset_code: str) -> None:
        self.custodian_id = custodian_id
        self.asset_code = asset_code
        super().__init__(f"No admissible counter-party for custodian={custodian_id} asset={asset_code}")


@dataclass(frozen=True)
class Counterparty:
    custodian: Custodian
    asset: Asset


def admissible_counterparties(
    custodians: Sequence[Custodian], source: Custodian, source_asset: Asset
) -> list[Counterparty]:
    """Every (custodian, asset) that can take the other leg of an event on `source_asset`.

    The source itself qualifies with each of its other assets (an internal
    exchange) once it holds at least two codes; any other custodian qualifies
    with its asset of the same code (a transfer).
    """
    candidates: list[Counterparty] = []
    for custodian in custodians:
        if custodian.id == source.id:
            if len(custodian.asset_codes()) < 2:
                continue
            candidates.extend(
                Counterparty(custodian=custodian, asset=asset)
                for asset in custodian.assets
                if asset.code != source_asset.code
            )
            continue

        same_code = custodian.get_asset(source_asset.code)
        if same_code is not None:
            candidates.append(Counterparty(custodian=custodian, asset=same_code))
    return candidates


def select_counterparty(
    custodians: Sequence[Custodian], source: Custodian, source_asset: Asset, rng: Random
) -> Counterparty:
    candidates = admissible_counterparties(custodians, source, source_asset)
    if not candidates:
        raise NoCounterpartyError(custodian_id=source.id, asset_code=source_asset.code)
    return rng.choice(candidates)


def round_balance(value: Decimal) -> Decimal:
    return value.quantize(BALANCE_QUANTUM, rounding=ROUND_HALF_EVEN)


class LedgerStore:
    """Thread-safe owner of all custodians, persisted to `state_file` on snapshot."""

    def __init__(
        self,
        state_file: Path,
        *,
        rng: Random | None = None,
        forex: ForexTable | None = None,
    ) -> None:
        self.state_file = state_file
        self._rng = rng if rng is not None else Random()
        self._forex = forex if forex is not None else DEFAULT_FOREX_TABLE
        self._lock = ReadWriteLock()

        self._custodians: list[Custodian] = load_custodians(state_file)
        self._custodians_by_id: dict[int, Custodian] = {c.id: c for c in self._custodians}
        if len(self._custodians_by_id) != len(self._custodians):
            raise SnapshotError(f"Snapshot {state_file} holds duplicate custodian IDs", path=state_file)
        if self._custodians:
            logger.info("Loaded %d custodians from %s", len(self._custodians), state_file)

    def is_empty(self) -> bool:
        with self._lock.read():
            return not self._custodians

    def add_custodian(self, *custodians: Custodian) -> list[CustodianId]:
        """Store copies of `custodians` under IDs following the highest one in use.

        Returns the assigned IDs in order.
        """
        if not custodians:
            return []

        with self._lock.write():
            start_id = max(self._custodians_by_id, default=0)
            added = [
                custodian.model_copy(update={"id": CustodianId(start_id + idx + 1)}, deep=True)
                for idx, custodian in enumerate(custodians)
            ]
            for custodian in added:
                self._custodians_by_id[custodian.id] = custodian
            self._custodians.extend(added)
            return [custodian.id for custodian in added]

    def get_custodian(self, custodian_id: int) -> Custodian | None:
        """Copy of the custodian with `custodian_id`, or None when unknown."""
        with self._lock.read():
            custodian = self._custodians_by_id.get(custodian_id)
            if custodian is None:
                return None
            return custodian.model_copy(deep=True)

    def custodians_without_transactions(self) -> list[Custodian]:
        with self._lock.read():
            return [
                Custodian(id=c.id, assets=[asset.model_copy() for asset in c.assets]) for c in self._custodians
            ]

    def snapshot(self) -> None:
        with self._lock.write():
            dump_custodians(self._custodians, self.state_file)

    def generate_events(self, count: int) -> list[Transaction]:
        created: list[Transaction] = []
        for _ in range(count):
            created.extend(self.add_random_event())
        return created

    def add_random_event(self) -> list[Transaction]:
        """Record one synthetic event and return the transactions it created.

        60% of events try to involve a second leg, either another asset of the
        same custodian or the same asset on another custodian. The rest, and
        those finding no counter-party, are external deposits or withdrawals.
        """
        with self._lock.write():
            holders = [custodian for custodian in self._custodians if custodian.assets]
            if not holders:
                raise LedgerStoreError("Cannot generate events: no custodian holds any asset")

            source = self._rng.choice(holders)
            source_asset = self._rng.choice(source.assets)

            counterparty: Counterparty | None = None
            if self._rng.randrange(100) < TWO_LEG_PERCENT:
                try:
                    counterparty = select_counterparty(self._custodians, source, source_asset, self._rng)
                except NoCounterpartyError as exc:
                    logger.warning("%s; recording an external event instead", exc)

            percentage = self._rng.randrange(MAX_AMOUNT_PERCENT)
            amount = source_asset.balance * Decimal(percentage) / 100

            if counterparty is not None:
                return self._commit_two_legs(source, source_asset, counterparty, amount)
            return self._commit_external(source, source_asset, amount)

    def _commit_two_legs(
        self, source: Custodian, source_asset: Asset, counterparty: Counterparty, amount: Decimal
    ) -> list[Transaction]:
        target = counterparty.custodian
        target_asset = counterparty.asset

        # Conversion may fail, so it happens before anything is touched.
        incoming_amount = amount
        if source_asset.code != target_asset.code:
            incoming_amount = self._forex.convert(amount, source_asset.code, target_asset.code)

        internal = target.id == source.id
        outgoing_id = TransactionId(source.last_transaction_id() + 1)
        incoming_id = TransactionId(outgoing_id + 1 if internal else target.last_transaction_id() + 1)

        outgoing = Transaction(
            asset=source_asset.code,
            amount=amount,
            direction=Direction.OUT,
            related_custodian_id=target.id,
            related_custodian_transaction_id=incoming_id,
        )
        incoming = Transaction(
            asset=target_asset.code,
            amount=incoming_amount,
            direction=Direction.IN,
            related_custodian_id=source.id,
            related_custodian_transaction_id=outgoing_id,
        )

        if internal:
            created = source.add_transaction(outgoing, incoming)
        else:
            created = [*source.add_transaction(outgoing), *target.add_transaction(incoming)]

        source_asset.balance = round_balance(source_asset.balance - amount)
        target_asset.balance = round_balance(target_asset.balance + incoming_amount)

        logger.debug(
            "%s %s %s from custodian %d to custodian %d as %s %s",
            "Exchanged" if internal else "Transferred",
            amount,
            source_asset.code,
            source.id,
            target.id,
            incoming_amount,
            target_asset.code,
        )
        return created

    def _commit_external(self, source: Custodian, source_asset: Asset, amount: Decimal) -> list[Transaction]:
        if self._rng.randrange(10) < 5:
            transaction = Transaction(asset=source_asset.code, amount=amount, direction=Direction.OUT)
            source_asset.balance = round_balance(source_asset.balance - amount)
        else:
            deposit = amount * DEPOSIT_MULTIPLIER
            transaction = Transaction(asset=source_asset.code, amount=deposit, direction=Direction.IN)
            source_asset.balance = round_balance(source_asset.balance + deposit)

        created = source.add_transaction(transaction)
        logger.debug(
            "External %s of %s %s on custodian %d",
            transaction.direction,
            transaction.amount,
            source_asset.code,
            source.id,
        )
        return created


__all__ = [
    "Counterparty",
    "LedgerStore",
    "LedgerStoreError",
    "NoCounterpartyError",
    "admissible_counterparties",
    "round_balance",
    "select_counterparty",
]
