"""TransactionSubmitter protocol - delivers signed envelopes to the network."""

from __future__ import annotations

from typing import Protocol

from stellar_sdk import FeeBumpTransactionEnvelope

from claim_sweeper.models.records import SubmitResult


class TransactionSubmitter(Protocol):
    """Submits a signed envelope; raises SubmissionRejected on rejection."""

    async def submit(self, envelope: FeeBumpTransactionEnvelope) -> SubmitResult:
        ...
