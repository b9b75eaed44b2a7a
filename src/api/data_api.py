from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Annotated, AsyncGenerator

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from pydantic import BaseModel

from api.dependencies import get_ledger_store
from api.middleware import install_middleware
from domain.forex import InvalidCurrencyPairError
from domain.models import Custodian
from store.ledger_store import LedgerStore, LedgerStoreError
from store.snapshot import SnapshotError

logger = logging.getLogger(__name__)

DEFAULT_MAX_GENERATE_COUNT = 1000

router = APIRouter()


class GenerateResult(BaseModel):
    events: int
    transactions: int


def parse_generate_count(raw: str | None, *, maximum: int) -> int:
    # Unparseable counts generate nothing, negative ones a single event.
    try:
        count = int(raw) if raw is not None else 0
    except ValueError:
        count = 0
    if count < 0:
        count = 1
    return min(count, maximum)


def generate_and_snapshot(store: LedgerStore, count: int) -> GenerateResult:
    created = store.generate_events(count)
    store.snapshot()
    return GenerateResult(events=count, transactions=len(created))


async def generate_periodically(store: LedgerStore, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(generate_and_snapshot, store, 1)
        except Exception:
            # One bad tick must not stop the ticker.
            logger.exception("Periodic event generation failed")


@router.get("/custodian/{custodian_id}")
def get_custodian(custodian_id: str, store: Annotated[LedgerStore, Depends(get_ledger_store)]) -> Custodian:
    try:
        parsed_id = int(custodian_id)
    except ValueError:
        parsed_id = -1

    custodian = store.get_custodian(parsed_id) if parsed_id >= 0 else None
    if custodian is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    return custodian


@router.get("/generate")
def generate(
    request: Request,
    store: Annotated[LedgerStore, Depends(get_ledger_store)],
    count: str | None = None,
) -> GenerateResult:
    events = parse_generate_count(count, maximum=request.app.state.max_generate_count)
    try:
        return generate_and_snapshot(store, events)
    except (LedgerStoreError, InvalidCurrencyPairError, SnapshotError) as exc:
        logger.exception("Generating %d events failed", events)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def create_data_app(
    store: LedgerStore,
    *,
    event_interval_seconds: float = 0,
    max_generate_count: int = DEFAULT_MAX_GENERATE_COUNT,
) -> FastAPI:
    """Custodian data service. A positive interval adds one random event (and a snapshot) per tick."""

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
        ticker: asyncio.Task[None] | None = None
        if event_interval_seconds > 0:
            logger.info("Generating an event every %ss", event_interval_seconds)
            ticker = asyncio.create_task(generate_periodically(store, event_interval_seconds))
        yield
        if ticker is not None:
            ticker.cancel()
            with suppress(asyncio.CancelledError):
                await ticker

    app = FastAPI(title="Custodian data simulator", lifespan=lifespan)
    app.state.ledger_store = store
    app.state.max_generate_count = max_generate_count
    install_middleware(app)
    app.include_router(router)
    return app


__all__ = ["GenerateResult", "create_data_app", "generate_and_snapshot", "parse_generate_count"]
