"""Transaction builder - sponsored claim and sweep envelopes.

Both envelopes share one shape: an inner transaction with the acting
account as source, signed by that account, wrapped in a fee-bump whose
fee source is the sponsor. The acting account therefore needs no
fee-paying balance of its own.
"""

from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal

from stellar_sdk import (
    Asset,
    FeeBumpTransactionEnvelope,
    Keypair,
    TransactionBuilder,
    TransactionEnvelope,
)

from claim_sweeper.errors import InsufficientBalance
from claim_sweeper.interfaces.queries import LedgerQueries
from claim_sweeper.models.records import AccountState

log = logging.getLogger(__name__)

NATIVE_PRECISION = Decimal("0.0000001")  # 7 decimal places
DEFAULT_RESERVE = Decimal("0.01")
DEFAULT_TX_TIMEOUT = 60


def compute_transferable(balance: Decimal, reserve: Decimal = DEFAULT_RESERVE) -> Decimal:
    """Native amount that can leave the account, truncated to 7 places.

    Raises:
        InsufficientBalance: nothing is left once ``reserve`` is kept back.
    """
    amount = (Decimal(balance) - reserve).quantize(NATIVE_PRECISION, rounding=ROUND_DOWN)
    if amount <= 0:
        raise InsufficientBalance(balance, reserve)
    return amount


class SweepTransactionBuilder:
    """Builds fee-bumped claim and payment envelopes."""

    def __init__(
        self,
        queries: LedgerQueries,
        network_passphrase: str,
        tx_timeout: int = DEFAULT_TX_TIMEOUT,
        reserve: Decimal = DEFAULT_RESERVE,
    ) -> None:
        self._queries = queries
        self._passphrase = network_passphrase
        self._tx_timeout = tx_timeout
        self._reserve = reserve

    @property
    def reserve(self) -> Decimal:
        return self._reserve

    def _builder(self, state: AccountState, base_fee: int) -> TransactionBuilder:
        return TransactionBuilder(
            source_account=state.account,
            network_passphrase=self._passphrase,
            base_fee=base_fee,
        )

    def _sponsor(
        self,
        inner: TransactionEnvelope,
        sponsor_kp: Keypair,
        base_fee: int,
    ) -> FeeBumpTransactionEnvelope:
        envelope = TransactionBuilder.build_fee_bump_transaction(
            fee_source=sponsor_kp.public_key,
            base_fee=base_fee,
            inner_transaction_envelope=inner,
            network_passphrase=self._passphrase,
        )
        envelope.sign(sponsor_kp)
        return envelope

    async def build_claim(
        self,
        balance_id: str,
        claim_kp: Keypair,
        sponsor_kp: Keypair,
    ) -> FeeBumpTransactionEnvelope:
        """Envelope claiming ``balance_id`` into the claim account."""
        state = await self._queries.load_account(claim_kp.public_key)
        base_fee = await self._queries.fetch_base_fee()

        inner = (
            self._builder(state, base_fee)
            .append_claim_claimable_balance_op(balance_id=balance_id)
            .set_timeout(self._tx_timeout)
            .build()
        )
        inner.sign(claim_kp)

        log.debug(
            "Built claim for %s (seq=%d, fee=%d)",
            balance_id[:16], inner.transaction.sequence, base_fee,
        )
        return self._sponsor(inner, sponsor_kp, base_fee)

    async def build_transfer(
        self,
        from_kp: Keypair,
        sponsor_kp: Keypair,
        to_address: str,
    ) -> tuple[FeeBumpTransactionEnvelope, Decimal]:
        """Envelope sweeping the native balance (minus reserve) to ``to_address``.

        Returns the envelope and the amount it moves.
        """
        state = await self._queries.load_account(from_kp.public_key)
        amount = compute_transferable(state.native_balance, self._reserve)
        base_fee = await self._queries.fetch_base_fee()

        inner = (
            self._builder(state, base_fee)
            .append_payment_op(
                destination=to_address,
                asset=Asset.native(),
                amount=str(amount),
            )
            .set_timeout(self._tx_timeout)
            .build()
        )
        inner.sign(from_kp)

        log.debug(
            "Built transfer of %s to %s (seq=%d, fee=%d)",
            amount, to_address[:8], inner.transaction.sequence, base_fee,
        )
        return self._sponsor(inner, sponsor_kp, base_fee), amount
