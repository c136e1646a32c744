"""Horizon read helpers: claimable balances, account state and base fee."""

from __future__ import annotations

import logging
from decimal import InvalidOperation

import httpx
from stellar_sdk import ServerAsync
from stellar_sdk.client.aiohttp_client import AiohttpClient
from stellar_sdk.exceptions import BaseRequestError

from claim_sweeper.errors import AccountLoadFailed, QueryFailed
from claim_sweeper.models.records import AccountState, ClaimableBalanceRecord

log = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 200


class ClaimableBalanceQueries:
    """Read-only queries against a Horizon server.

    Claimable balances are fetched with a plain httpx client; account
    state and the base fee go through the SDK's async Horizon server.
    Nothing is retried here - the daemon loop retries by polling again.
    """

    def __init__(
        self,
        horizon_url: str,
        page_limit: int = MAX_PAGE_LIMIT,
        request_timeout: float = 30.0,
        server: ServerAsync | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._horizon_url = horizon_url.rstrip("/")
        self._page_limit = min(page_limit, MAX_PAGE_LIMIT)
        self._http = httpx.AsyncClient(
            base_url=self._horizon_url,
            timeout=httpx.Timeout(request_timeout, connect=10),
            transport=transport,
        )
        self._server = server or ServerAsync(
            self._horizon_url, client=AiohttpClient(request_timeout=request_timeout),
        )

    @property
    def server(self) -> ServerAsync:
        return self._server

    async def close(self) -> None:
        """Close the httpx client and the SDK's aiohttp session."""
        await self._http.aclose()
        await self._server.close()

    async def get_claimable_balances(self, address: str) -> list[ClaimableBalanceRecord]:
        """First page of balances claimable by ``address``, oldest first.

        Raises:
            QueryFailed: transport error, non-2xx status or malformed body.
        """
        params = {"claimant": address, "limit": self._page_limit, "order": "asc"}
        try:
            resp = await self._http.get("/claimable_balances", params=params)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            raise QueryFailed(f"claimable_balances request failed: {exc}") from exc
        except ValueError as exc:
            raise QueryFailed(f"claimable_balances returned invalid JSON: {exc}") from exc

        try:
            raw_records = (body.get("_embedded") or {}).get("records") or []
            records = [ClaimableBalanceRecord.from_horizon(r) for r in raw_records]
        except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise QueryFailed(f"malformed claimable balance record: {exc!r}") from exc

        log.debug("Fetched %d claimable balances for %s", len(records), address[:8])
        return records

    async def load_account(self, address: str) -> AccountState:
        """Load the sequence number and native balance of ``address``."""
        try:
            raw = await self._server.accounts().account_id(address).call()
            return AccountState.from_horizon(raw)
        except BaseRequestError as exc:
            raise AccountLoadFailed(f"could not load account {address[:8]}: {exc}") from exc
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise AccountLoadFailed(f"malformed account {address[:8]}: {exc!r}") from exc

    async def fetch_base_fee(self) -> int:
        """Current base fee per operation, in stroops."""
        try:
            return await self._server.fetch_base_fee()
        except BaseRequestError as exc:
            raise AccountLoadFailed(f"could not fetch base fee: {exc}") from exc
