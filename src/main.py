from __future__ import annotations

import argparse
import logging
from pathlib import Path
from random import Random
from typing import Sequence

import uvicorn

from api.data_api import create_data_app
from api.tracker_api import create_tracker_app
from config import AppSettings, config
from services.custodian_client import CustodianClient
from store.ledger_store import LedgerStore
from store.seed import seed_store
from store.user_store import InMemoryUserStore

logger = logging.getLogger(__name__)


def parse_listen_address(value: str) -> tuple[str, int]:
    host, separator, port = value.rpartition(":")
    if not separator or not port.isdigit():
        msg = f"listen address must look like HOST:PORT, got {value!r}"
        raise ValueError(msg)
    return host or "0.0.0.0", int(port)


def run_data(
    state_file: Path,
    listen: str,
    *,
    event_interval_seconds: float,
    seed: int | None,
    settings: AppSettings,
) -> None:
    host, port = parse_listen_address(listen)
    store = LedgerStore(state_file, rng=Random(seed))
    if seed_store(store, event_count=settings.initial_event_count):
        logger.info("Generated initial data into %s", state_file)

    app = create_data_app(
        store,
        event_interval_seconds=event_interval_seconds,
        max_generate_count=settings.max_generate_count,
    )
    logger.info("listening for HTTP traffic on %s", listen)
    uvicorn.run(app, host=host, port=port)


def run_tracker(listen: str, custodian_url: str, *, settings: AppSettings) -> None:
    host, port = parse_listen_address(listen)
    user_store = InMemoryUserStore()
    user_store.populate()
    client = CustodianClient(base_url=custodian_url, timeout=settings.custodian_fetch_timeout_seconds)

    app = create_tracker_app(user_store, client, fetch_timeout_seconds=settings.custodian_fetch_timeout_seconds)
    logger.info("listening for HTTP traffic on %s", listen)
    uvicorn.run(app, host=host, port=port)


def build_parser(settings: AppSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portfolio-data", description="Set of services for portfolio tracker tests.")
    commands = parser.add_subparsers(dest="command", required=True)

    data = commands.add_parser("data", help="Simulate custodian data")
    data.add_argument("-s", "--state", type=Path, default=settings.state_file, help="file to save state to")
    data.add_argument("-l", "--listen", default=settings.data_listen, help="the address to listen on")
    data.add_argument(
        "-t",
        "--timer",
        type=float,
        default=settings.event_interval_seconds,
        help="seconds between generated events, 0 disables automatic generation",
    )
    data.add_argument("--seed", type=int, default=settings.random_seed, help="seed for reproducible events")

    track = commands.add_parser("track", help="Start the tracker service")
    track.add_argument("-l", "--listen", default=settings.tracker_listen, help="the address to listen on")
    track.add_argument("-c", "--custodian", default=settings.custodian_url, help="the custodian service url")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    settings = config()
    args = build_parser(settings).parse_args(argv)
    if args.command == "data":
        run_data(
            args.state,
            args.listen,
            event_interval_seconds=args.timer,
            seed=args.seed,
            settings=settings,
        )
    else:
        run_tracker(args.listen, args.custodian, settings=settings)


def cli() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    main()


if __name__ == "__main__":
    cli()
