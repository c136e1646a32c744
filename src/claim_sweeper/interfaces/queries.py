"""LedgerQueries protocol - read-only access to Horizon ledger state."""

from __future__ import annotations

from typing import Protocol

from claim_sweeper.models.records import AccountState, ClaimableBalanceRecord


class LedgerQueries(Protocol):
    """Reads claimable balances, account state and the base fee."""

    async def get_claimable_balances(self, address: str) -> list[ClaimableBalanceRecord]:
        """First page of balances claimable by ``address``, ascending."""
        ...

    async def load_account(self, address: str) -> AccountState:
        """Fresh sequence number and native balance for ``address``."""
        ...

    async def fetch_base_fee(self) -> int:
        """Current network base fee in stroops."""
        ...

    async def close(self) -> None:
        ...
