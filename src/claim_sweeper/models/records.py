"""Ledger records and operation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from stellar_sdk import Account


@dataclass(frozen=True)
class Claimant:
    """One claimant entry of a claimable balance."""

    destination: str
    predicate: dict[str, Any] = field(default_factory=dict)

    @property
    def not_before(self) -> str | None:
        """Raw ``predicate.not.abs_before_epoch`` value, if present."""
        negated = self.predicate.get("not")
        if not isinstance(negated, dict):
            return None
        value = negated.get("abs_before_epoch")
        return str(value) if value not in (None, "") else None

    @classmethod
    def from_horizon(cls, raw: dict[str, Any]) -> Claimant:
        predicate = raw.get("predicate") or {}
        if not isinstance(predicate, dict):
            raise ValueError(f"claimant predicate is not an object: {predicate!r}")
        return cls(destination=str(raw["destination"]), predicate=predicate)


@dataclass(frozen=True)
class ClaimableBalanceRecord:
    """A claimable balance as returned by Horizon."""

    balance_id: str
    amount: Decimal
    asset: str  # "native" or "CODE:ISSUER"
    claimants: tuple[Claimant, ...]
    sponsor: str | None = None
    last_modified_ledger: int | None = None

    @property
    def is_native(self) -> bool:
        return self.asset == "native"

    @classmethod
    def from_horizon(cls, raw: dict[str, Any]) -> ClaimableBalanceRecord:
        """Build a record from one entry of ``_embedded.records``.

        Raises KeyError/ValueError on malformed input.
        """
        ledger = raw.get("last_modified_ledger")
        return cls(
            balance_id=str(raw["id"]),
            amount=Decimal(str(raw["amount"])),
            asset=str(raw.get("asset", "native")),
            claimants=tuple(Claimant.from_horizon(c) for c in raw.get("claimants", [])),
            sponsor=raw.get("sponsor"),
            last_modified_ledger=int(ledger) if ledger is not None else None,
        )


@dataclass
class AccountState:
    """Current on-chain state of an account needed to build a transaction."""

    account: Account
    native_balance: Decimal

    @property
    def account_id(self) -> str:
        return self.account.account.account_id

    @classmethod
    def from_horizon(cls, raw: dict[str, Any]) -> AccountState:
        native = Decimal("0")
        for balance in raw.get("balances", []):
            if balance.get("asset_type") == "native":
                native = Decimal(str(balance["balance"]))
                break
        return cls(
            account=Account(raw["account_id"], int(raw["sequence"])),
            native_balance=native,
        )


@dataclass
class SubmitResult:
    """Horizon's acceptance of a submitted envelope."""

    tx_hash: str
    ledger: int | None = None
    successful: bool = True


class SweepStatus(str, Enum):
    """Outcome of processing one claimable balance in a cycle."""

    SWEPT = "swept"  # claimed and transferred
    LOCKED = "locked"  # not claimable yet
    RACE_LOST = "race_lost"  # another agent claimed it first
    CLAIM_FAILED = "claim_failed"
    TRANSFER_FAILED = "transfer_failed"  # claimed, but the sweep failed


@dataclass
class SweepResult:
    """Result of the claim-then-transfer workflow for one balance."""

    status: SweepStatus
    balance_id: str
    amount: Decimal
    claim_tx_hash: str | None = None
    transfer_tx_hash: str | None = None
    transferred: Decimal | None = None
    error: str | None = None

    @property
    def claimed(self) -> bool:
        return self.claim_tx_hash is not None


@dataclass
class CycleReport:
    """Aggregated outcomes of one poll cycle."""

    fetched: int = 0
    results: list[SweepResult] = field(default_factory=list)

    def add(self, result: SweepResult) -> None:
        self.results.append(result)

    def count(self, status: SweepStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def eligible(self) -> int:
        return sum(1 for r in self.results if r.status != SweepStatus.LOCKED)

    @property
    def swept(self) -> int:
        return self.count(SweepStatus.SWEPT)

    @property
    def race_lost(self) -> int:
        return self.count(SweepStatus.RACE_LOST)

    @property
    def failed(self) -> int:
        return self.count(SweepStatus.CLAIM_FAILED) + self.count(SweepStatus.TRANSFER_FAILED)
