from __future__ import annotations

import logging
from decimal import Decimal

from domain.models import Asset, AssetCode, Custodian

from .ledger_store import LedgerStore

logger = logging.getLogger(__name__)

DEFAULT_SEED_EVENT_COUNT = 100

# One BTC wallet followed by three exchanges holding BTC and GBP.
SEED_CUSTODIAN_BALANCES: tuple[dict[str, str], ...] = (
    {"BTC": "10.00000001"},
    {"BTC": "10.00000001", "GBP": "100000.01"},
    {"BTC": "10.00000001", "GBP": "100000.01"},
    {"BTC": "10.00000001", "GBP": "100000.01"},
)


def initial_custodians() -> list[Custodian]:
    return [
        Custodian(assets=[Asset(code=AssetCode(code), balance=Decimal(balance)) for code, balance in balances.items()])
        for balances in SEED_CUSTODIAN_BALANCES
    ]


def seed_store(store: LedgerStore, *, event_count: int = DEFAULT_SEED_EVENT_COUNT) -> bool:
    """Populate an empty store with the initial custodians and a burst of events.

    Returns False, leaving the store untouched, when it already holds data.
    """
    if not store.is_empty():
        return False

    store.add_custodian(*initial_custodians())
    created = store.generate_events(event_count)
    store.snapshot()
    logger.info(
        "Seeded %d custodians with %d transactions from %d events into %s",
        len(SEED_CUSTODIAN_BALANCES),
        len(created),
        event_count,
        store.state_file,
    )
    return True


__all__ = ["DEFAULT_SEED_EVENT_COUNT", "SEED_CUSTODIAN_BALANCES", "initial_custodians", "seed_store"]
