from __future__ import annotations

from time import monotonic
from typing import Any, Protocol

import requests
from pydantic import ValidationError

from domain.models import Custodian


class CustodianAPIError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        custodian_id: int | None = None,
        status_code: int | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.custodian_id = custodian_id
        self.status_code = status_code
        self.payload = payload


class CustodianFetcher(Protocol):
    def fetch_custodians(self, *custodian_ids: int, timeout: float | None = None) -> list[Custodian]: ...


class CustodianClient(CustodianFetcher):
    """Client for the custodian data service: one GET per custodian, `{base_url}{id}`."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            msg = "base_url must be provided"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be > 0"
            raise ValueError(msg)

        self.base_url = base_url
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch_custodians(self, *custodian_ids: int, timeout: float | None = None) -> list[Custodian]:
        """Fetch custodians in the order requested.

        `timeout` bounds the whole batch. Any failure aborts the batch; there
        are no partial results and no retries.
        """
        deadline = monotonic() + (self.timeout if timeout is None else timeout)
        return [self._fetch_custodian(custodian_id, deadline=deadline) for custodian_id in custodian_ids]

    def _fetch_custodian(self, custodian_id: int, *, deadline: float) -> Custodian:
        remaining = deadline - monotonic()
        if remaining <= 0:
            raise CustodianAPIError("Custodian fetch deadline exceeded", custodian_id=custodian_id)

        url = f"{self.base_url}{custodian_id}"
        try:
            response = self._session.request("GET", url, timeout=remaining)
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise CustodianAPIError(
                "Custodian GET request failed", custodian_id=custodian_id, status_code=status_code
            ) from exc

        if response.status_code != 200:
            raise CustodianAPIError(
                f"Custodian GET returned status {response.status_code}",
                custodian_id=custodian_id,
                status_code=response.status_code,
                payload=response.text,
            )

        try:
            return Custodian.model_validate_json(response.content)
        except ValidationError as exc:
            raise CustodianAPIError(
                "Custodian GET returned an invalid payload",
                custodian_id=custodian_id,
                status_code=response.status_code,
                payload=response.text,
            ) from exc


__all__ = ["CustodianAPIError", "CustodianClient", "CustodianFetcher"]
