from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from store.ledger_store import LedgerStore
from store.seed import SEED_CUSTODIAN_BALANCES, initial_custodians, seed_store
from tests.constants import BTC, GBP
from tests.helpers.custodians import make_custodian


def test_initial_custodians() -> None:
    custodians = initial_custodians()

    assert len(custodians) == len(SEED_CUSTODIAN_BALANCES) == 4
    assert custodians[0].asset_codes() == {BTC}
    assert all(c.asset_codes() == {BTC, GBP} for c in custodians[1:])
    assert custodians[1].get_asset(GBP).balance == Decimal("100000.01")  # type: ignore[union-attr]
    assert all(not c.transactions for c in custodians)


def test_seed_store_populates_and_snapshots(ledger_store: LedgerStore, state_file: Path) -> None:
    assert seed_store(ledger_store, event_count=25)

    assert state_file.exists()
    reloaded = LedgerStore(state_file)
    assert not reloaded.is_empty()
    transactions = sum(len(reloaded.get_custodian(i).transactions) for i in (1, 2, 3, 4))  # type: ignore[union-attr]
    assert transactions >= 25


def test_seed_store_leaves_existing_data_alone(ledger_store: LedgerStore, state_file: Path) -> None:
    ledger_store.add_custodian(make_custodian(0, GBP="1"))

    assert not seed_store(ledger_store)

    assert not state_file.exists()
    assert ledger_store.get_custodian(2) is None
