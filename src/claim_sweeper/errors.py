"""Exception hierarchy for the sweeper.

Everything raised on purpose derives from SweeperError so the daemon can
tell expected per-record failures apart from programming errors.
"""

from __future__ import annotations

from enum import Enum


class SweeperError(Exception):
    """Base class for all sweeper errors."""


class ConfigError(SweeperError):
    """Configuration is missing or invalid. Fatal at startup."""


class InvalidMnemonic(ConfigError):
    """A recovery phrase failed the BIP-39 checksum."""


class QueryFailed(SweeperError):
    """Fetching claimable balances failed (transport, status or parse)."""


class AccountLoadFailed(SweeperError):
    """Loading an account or the network base fee failed."""


class InsufficientBalance(SweeperError):
    """Nothing left to transfer once the reserve is kept back."""

    def __init__(self, balance, reserve) -> None:
        super().__init__(f"balance {balance} does not exceed reserve {reserve}")
        self.balance = balance
        self.reserve = reserve


class SubmissionFailed(SweeperError):
    """The envelope could not be delivered to Horizon."""


class RejectionReason(str, Enum):
    """Classification of a Horizon transaction rejection."""

    CLAIMANT_INVALID = "claimant_invalid"  # balance claimed by someone else
    TOO_LATE = "too_late"  # validity window elapsed
    BAD_SEQUENCE = "bad_sequence"
    INSUFFICIENT_FEE = "insufficient_fee"
    UNDERFUNDED = "underfunded"
    UNKNOWN = "unknown"


class SubmissionRejected(SweeperError):
    """Horizon rejected the envelope; carries the structured result codes."""

    def __init__(
        self,
        reason: RejectionReason,
        transaction_code: str | None = None,
        inner_transaction_code: str | None = None,
        operation_codes: list[str] | None = None,
        detail: str = "",
    ) -> None:
        self.reason = reason
        self.transaction_code = transaction_code
        self.inner_transaction_code = inner_transaction_code
        self.operation_codes = list(operation_codes or [])
        self.detail = detail
        super().__init__(self._message())

    def _message(self) -> str:
        codes = [c for c in (self.transaction_code, self.inner_transaction_code) if c]
        codes.extend(self.operation_codes)
        text = f"{self.reason.value}"
        if codes:
            text += f" ({', '.join(codes)})"
        if self.detail:
            text += f": {self.detail}"
        return text


class ClaimRejectedByRace(SubmissionRejected):
    """Another agent claimed the balance first."""
