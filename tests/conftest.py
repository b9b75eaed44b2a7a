from pathlib import Path
from random import Random

import pytest

from store.ledger_store import LedgerStore
from store.seed import initial_custodians


@pytest.fixture(scope="function")
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture(scope="function")
def rng() -> Random:
    return Random(1234)


@pytest.fixture(scope="function")
def ledger_store(state_file: Path, rng: Random) -> LedgerStore:
    return LedgerStore(state_file, rng=rng)


@pytest.fixture(scope="function")
def seeded_store(ledger_store: LedgerStore) -> LedgerStore:
    ledger_store.add_custodian(*initial_custodians())
    return ledger_store
