from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.tracker_api import create_tracker_app
from domain.models import Custodian, CustodianId, Direction, User
from services.custodian_client import CustodianAPIError
from store.user_store import InMemoryUserStore
from tests.constants import BTC, GBP
from tests.helpers.custodians import make_custodian, make_transaction, with_transactions


class StubFetcher:
    def __init__(self, custodians: list[Custodian]) -> None:
        self.custodians = {c.id: c for c in custodians}
        self.calls: list[tuple[tuple[int, ...], float | None]] = []
        self.fail = False

    def fetch_custodians(self, *custodian_ids: int, timeout: float | None = None) -> list[Custodian]:
        self.calls.append((custodian_ids, timeout))
        if self.fail:
            raise CustodianAPIError("boom", custodian_id=custodian_ids[0], status_code=502)
        return [self.custodians[custodian_id] for custodian_id in custodian_ids]


@pytest.fixture(scope="function")
def fetcher() -> StubFetcher:
    return StubFetcher(
        [
            make_custodian(1, BTC="1.5"),
            with_transactions(
                make_custodian(2, BTC="2", GBP="1000"),
                [
                    make_transaction(1, GBP, "500", Direction.IN),
                    make_transaction(2, GBP, "100", Direction.OUT),
                    make_transaction(3, BTC, "0.5", Direction.OUT, related_custodian_id=3, related_transaction_id=1),
                    make_transaction(4, GBP, "40000", Direction.OUT, related_custodian_id=2, related_transaction_id=5),
                    make_transaction(5, BTC, "1", Direction.IN, related_custodian_id=2, related_transaction_id=4),
                    make_transaction(6, GBP, "20.5", Direction.OUT),
                ],
            ),
            make_custodian(3, GBP="10.25", EUR="3"),
            make_custodian(4),
            with_transactions(
                make_custodian(5, BTC="1"),
                [make_transaction(1, BTC, "1", Direction.IN, related_transaction_id=2)],
            ),
        ]
    )


@pytest.fixture(scope="function")
def client(fetcher: StubFetcher) -> TestClient:
    users = InMemoryUserStore()
    users.populate()
    users.add_user(User(id=2, custodians=[CustodianId(5)]))
    return TestClient(create_tracker_app(users, fetcher, fetch_timeout_seconds=2.5))


def test_get_user(client: TestClient) -> None:
    response = client.get("/user/1")

    assert response.status_code == 200
    assert response.json() == {"id": 1, "custodians": [1, 2, 3, 4]}


@pytest.mark.parametrize("user_id", ["3", "abc"])
def test_unknown_user(client: TestClient, user_id: str) -> None:
    response = client.get(f"/user/{user_id}/holdings")

    assert response.status_code == 404
    assert response.json() == {"detail": "not found"}


def test_holdings_sum_every_custodian(client: TestClient, fetcher: StubFetcher) -> None:
    response = client.get("/user/1/holdings")

    assert response.status_code == 200
    assert response.json() == [
        {"code": "BTC", "balance": "3.5"},
        {"code": "EUR", "balance": "3"},
        {"code": "GBP", "balance": "1010.25"},
    ]
    assert fetcher.calls == [((1, 2, 3, 4), 2.5)]


def test_custodian_failure_is_a_server_error(client: TestClient, fetcher: StubFetcher) -> None:
    fetcher.fail = True

    response = client.get("/user/1/holdings")

    assert response.status_code == 500
    assert response.json() == {"detail": "custodian error"}


def test_all_transactions(client: TestClient, fetcher: StubFetcher) -> None:
    response = client.get("/user/1/custodian/2/transactions")

    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body] == [1, 2, 3, 4, 5, 6]
    assert body[0] == {"id": 1, "asset": "GBP", "amount": "500", "direction": "IN"}
    assert body[2]["related_custodian_id"] == 3
    assert fetcher.calls == [((2,), 2.5)]


@pytest.mark.parametrize(
    ("tx_type", "expected_ids"),
    [("0", [1]), ("1", [2, 6]), ("2", [3]), ("3", [4, 5])],
)
def test_transactions_filtered_by_type(client: TestClient, tx_type: str, expected_ids: list[int]) -> None:
    response = client.get("/user/1/custodian/2/transactions", params={"type": tx_type})

    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == expected_ids


def test_transaction_summary(client: TestClient) -> None:
    withdrawals = client.get("/user/1/custodian/2/transactions", params={"type": "1", "summary": "1"})
    everything = client.get("/user/1/custodian/2/transactions", params={"summary": "1"})

    assert withdrawals.json() == [{"code": "GBP", "balance": "120.5"}]
    assert everything.json() == [{"code": "BTC", "balance": "1.5"}, {"code": "GBP", "balance": "40620.5"}]


@pytest.mark.parametrize("tx_type", ["4", "-1", "deposit"])
def test_invalid_transaction_type(client: TestClient, tx_type: str) -> None:
    response = client.get("/user/1/custodian/2/transactions", params={"type": tx_type})

    assert response.status_code == 400


@pytest.mark.parametrize(("custodian_id", "status_code"), [("5", 401), ("abc", 400)])
def test_custodian_must_belong_to_user(
    client: TestClient, fetcher: StubFetcher, custodian_id: str, status_code: int
) -> None:
    response = client.get(f"/user/1/custodian/{custodian_id}/transactions")

    assert response.status_code == status_code
    assert fetcher.calls == []


def test_unclassifiable_transaction_is_a_server_error(client: TestClient) -> None:
    unfiltered = client.get("/user/2/custodian/5/transactions")
    filtered = client.get("/user/2/custodian/5/transactions", params={"type": "0"})

    assert unfiltered.status_code == 200
    assert filtered.status_code == 500


def test_exchanges(client: TestClient) -> None:
    response = client.get("/user/1/custodian/2/exchanges")

    assert response.status_code == 200
    assert response.json() == [{"from_asset": "GBP", "from_amount": "40000", "to_asset": "BTC", "to_amount": "1"}]
