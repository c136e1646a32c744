"""TransactionBuilder protocol - builds sponsored claim and transfer envelopes."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from stellar_sdk import FeeBumpTransactionEnvelope, Keypair


class TransactionBuilder(Protocol):
    """Builds fee-bumped envelopes signed by the acting and sponsor keys."""

    async def build_claim(
        self, balance_id: str, claim_kp: Keypair, sponsor_kp: Keypair,
    ) -> FeeBumpTransactionEnvelope:
        ...

    async def build_transfer(
        self, from_kp: Keypair, sponsor_kp: Keypair, to_address: str,
    ) -> tuple[FeeBumpTransactionEnvelope, Decimal]:
        ...
