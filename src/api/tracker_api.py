from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, status

from api.dependencies import get_current_user, get_custodian_fetcher, get_fetch_timeout
from api.middleware import install_middleware
from domain.aggregation import aggregate_holdings, summarize_transactions
from domain.models import Asset, Custodian, Transaction, User
from domain.transactions import (
    AssetExchange,
    TransactionClassificationError,
    TransactionType,
    asset_exchanges,
    filter_transactions_by_type,
)
from services.custodian_client import CustodianAPIError, CustodianFetcher
from store.user_store import UserStore

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0

router = APIRouter(prefix="/user/{user_id}")

CurrentUser = Annotated[User, Depends(get_current_user)]
Fetcher = Annotated[CustodianFetcher, Depends(get_custodian_fetcher)]
FetchTimeout = Annotated[float, Depends(get_fetch_timeout)]


def _fetch(fetcher: CustodianFetcher, custodian_ids: list[int], timeout: float) -> list[Custodian]:
    try:
        return fetcher.fetch_custodians(*custodian_ids, timeout=timeout)
    except CustodianAPIError as exc:
        logger.warning("Fetching custodians %s failed: %s", custodian_ids, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="custodian error") from exc


def _user_custodian(user: User, raw_custodian_id: str, fetcher: CustodianFetcher, timeout: float) -> Custodian:
    try:
        custodian_id = int(raw_custodian_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid custodian id") from exc

    if custodian_id not in user.custodians:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid custodian ID")

    custodians = _fetch(fetcher, [custodian_id], timeout)
    if len(custodians) != 1:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="custodian count error")
    return custodians[0]


def _parse_transaction_type(raw: str) -> TransactionType:
    try:
        transaction_type = TransactionType(int(raw))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid tx type") from exc
    if transaction_type == TransactionType.INVALID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid tx type")
    return transaction_type


@router.get("")
def get_user(user: CurrentUser) -> User:
    return user


@router.get("/holdings")
def get_holdings(user: CurrentUser, fetcher: Fetcher, timeout: FetchTimeout) -> list[Asset]:
    custodians = _fetch(fetcher, list(user.custodians), timeout)
    return aggregate_holdings(custodians)


@router.get("/custodian/{custodian_id}/transactions", response_model=None)
def get_transactions(
    custodian_id: str,
    user: CurrentUser,
    fetcher: Fetcher,
    timeout: FetchTimeout,
    tx_type: Annotated[str | None, Query(alias="type")] = None,
    summary: str | None = None,
) -> list[Transaction] | list[Asset]:
    """Transactions of one of the user's custodians, optionally filtered by type or summarized per asset."""
    custodian = _user_custodian(user, custodian_id, fetcher, timeout)

    transactions = custodian.transactions
    if tx_type is not None:
        transaction_type = _parse_transaction_type(tx_type)
        try:
            transactions = filter_transactions_by_type(custodian, transaction_type)
        except TransactionClassificationError as exc:
            logger.error("Classifying transactions of custodian %d failed: %s", custodian.id, exc)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    if summary is not None:
        return summarize_transactions(transactions)
    return transactions


@router.get("/custodian/{custodian_id}/exchanges")
def get_exchanges(custodian_id: str, user: CurrentUser, fetcher: Fetcher, timeout: FetchTimeout) -> list[AssetExchange]:
    custodian = _user_custodian(user, custodian_id, fetcher, timeout)
    try:
        return asset_exchanges(custodian)
    except TransactionClassificationError as exc:
        logger.error("Pairing exchanges of custodian %d failed: %s", custodian.id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def create_tracker_app(
    user_store: UserStore,
    fetcher: CustodianFetcher,
    *,
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> FastAPI:
    app = FastAPI(title="Portfolio tracker")
    app.state.user_store = user_store
    app.state.custodian_fetcher = fetcher
    app.state.fetch_timeout_seconds = fetch_timeout_seconds
    install_middleware(app)
    app.include_router(router)
    return app


__all__ = ["create_tracker_app"]
