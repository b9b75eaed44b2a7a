from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from domain.models import User
from services.custodian_client import CustodianFetcher
from store.ledger_store import LedgerStore
from store.user_store import UserNotFoundError, UserStore


def get_ledger_store(request: Request) -> LedgerStore:
    return request.app.state.ledger_store


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_custodian_fetcher(request: Request) -> CustodianFetcher:
    return request.app.state.custodian_fetcher


def get_fetch_timeout(request: Request) -> float:
    return request.app.state.fetch_timeout_seconds


def get_current_user(user_id: str, users: Annotated[UserStore, Depends(get_user_store)]) -> User:
    # No authentication: the user in the path is trusted as is.
    try:
        return users.get_user(int(user_id))
    except (ValueError, UserNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found") from exc
