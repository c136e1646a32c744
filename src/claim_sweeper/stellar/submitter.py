"""Horizon submitter - posts signed envelopes and types the rejections."""

from __future__ import annotations

import logging
from typing import Any

from stellar_sdk import FeeBumpTransactionEnvelope, ServerAsync
from stellar_sdk.exceptions import BaseHorizonError, BaseRequestError

from claim_sweeper.errors import (
    ClaimRejectedByRace,
    RejectionReason,
    SubmissionFailed,
    SubmissionRejected,
)
from claim_sweeper.models.records import SubmitResult

log = logging.getLogger(__name__)

# Operation code meaning another agent got to the balance first. Anything
# else, op_does_not_exist included, is a hard rejection.
RACE_OPERATION_CODES = frozenset({"op_claimable_balance_claimant_invalid"})

_TRANSACTION_REASONS = {
    "tx_too_late": RejectionReason.TOO_LATE,
    "tx_bad_seq": RejectionReason.BAD_SEQUENCE,
    "tx_insufficient_fee": RejectionReason.INSUFFICIENT_FEE,
    "tx_insufficient_balance": RejectionReason.UNDERFUNDED,
}


def classify_result_codes(
    transaction_code: str | None,
    inner_transaction_code: str | None,
    operation_codes: list[str],
) -> RejectionReason:
    """Map Horizon ``extras.result_codes`` onto a RejectionReason."""
    if RACE_OPERATION_CODES.intersection(operation_codes):
        return RejectionReason.CLAIMANT_INVALID
    if "op_underfunded" in operation_codes:
        return RejectionReason.UNDERFUNDED
    for code in (inner_transaction_code, transaction_code):
        if code in _TRANSACTION_REASONS:
            return _TRANSACTION_REASONS[code]
    return RejectionReason.UNKNOWN


def rejection_from_error(exc: BaseHorizonError) -> SubmissionRejected:
    """Build the typed rejection for a Horizon error response."""
    extras: dict[str, Any] = exc.extras or {}
    codes: dict[str, Any] = extras.get("result_codes") or {}
    transaction_code = codes.get("transaction")
    inner_code = codes.get("inner_transaction")
    operation_codes = [str(c) for c in codes.get("operations") or []]

    reason = classify_result_codes(transaction_code, inner_code, operation_codes)
    error_cls = (
        ClaimRejectedByRace
        if reason == RejectionReason.CLAIMANT_INVALID
        else SubmissionRejected
    )
    return error_cls(
        reason,
        transaction_code=transaction_code,
        inner_transaction_code=inner_code,
        operation_codes=operation_codes,
        detail=exc.title or exc.detail or "",
    )


class HorizonSubmitter:
    """Submits fee-bumped envelopes through the SDK's async Horizon server.

    No retries: a rejection goes straight back to the caller as a
    SubmissionRejected (ClaimRejectedByRace for a lost claim race).
    """

    def __init__(self, server: ServerAsync) -> None:
        self._server = server

    async def submit(self, envelope: FeeBumpTransactionEnvelope) -> SubmitResult:
        tx_hash = envelope.hash_hex()
        log.debug("Submitting tx %s", tx_hash[:16])

        try:
            resp = await self._server.submit_transaction(envelope)
        except BaseHorizonError as exc:
            rejection = rejection_from_error(exc)
            log.debug("tx %s rejected: %s", tx_hash[:16], rejection)
            raise rejection from exc
        except BaseRequestError as exc:
            raise SubmissionFailed(f"could not submit tx {tx_hash[:16]}: {exc}") from exc

        ledger = resp.get("ledger")
        return SubmitResult(
            tx_hash=resp.get("hash", tx_hash),
            ledger=int(ledger) if ledger is not None else None,
            successful=bool(resp.get("successful", True)),
        )
