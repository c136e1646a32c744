"""Transaction builder: transferable amount and sponsored envelopes."""

from __future__ import annotations

import time
from decimal import Decimal

import pytest
from stellar_sdk import FeeBumpTransactionEnvelope
from stellar_sdk.operation import ClaimClaimableBalance, Payment

from claim_sweeper.errors import AccountLoadFailed, InsufficientBalance
from claim_sweeper.stellar.builder import SweepTransactionBuilder, compute_transferable
from tests.conftest import (
    CLAIM_KEYPAIR,
    CLAIM_PUBLIC,
    NETWORK_PASSPHRASE,
    SPONSOR_KEYPAIR,
    SPONSOR_PUBLIC,
    TARGET_ADDRESS,
)
from tests.factories import make_balance_id


@pytest.fixture
def builder(mock_queries):
    return SweepTransactionBuilder(mock_queries, NETWORK_PASSPHRASE)


def _signed_by(envelope, keypair) -> bool:
    hint = keypair.signature_hint()
    for sig in envelope.signatures:
        if sig.signature_hint == hint:
            keypair.verify(envelope.hash(), sig.signature)
            return True
    return False


# ── compute_transferable ──────────────────────────────────────────


@pytest.mark.parametrize("balance, expected", [
    ("10", "9.9900000"),
    ("0.0100001", "0.0000001"),
    ("1234.5678901", "1234.5578901"),
])
def test_transferable_amount(balance, expected):
    assert compute_transferable(Decimal(balance)) == Decimal(expected)


def test_transferable_amount_has_native_precision():
    amount = compute_transferable(Decimal("3.14159265358979"))
    assert amount == Decimal("3.1315926")
    assert amount.as_tuple().exponent == -7


@pytest.mark.parametrize("balance", ["0", "0.005", "0.01"])
def test_insufficient_balance(balance):
    with pytest.raises(InsufficientBalance) as info:
        compute_transferable(Decimal(balance))
    assert info.value.reserve == Decimal("0.01")


def test_custom_reserve():
    assert compute_transferable(Decimal("2"), Decimal("1.5")) == Decimal("0.5")
    with pytest.raises(InsufficientBalance):
        compute_transferable(Decimal("1.5"), Decimal("1.5"))


# ── build_claim ───────────────────────────────────────────────────


async def test_build_claim_envelope(builder, ledger):
    balance_id = make_balance_id("claim-me")

    envelope = await builder.build_claim(balance_id, CLAIM_KEYPAIR, SPONSOR_KEYPAIR)

    assert isinstance(envelope, FeeBumpTransactionEnvelope)
    fee_bump = envelope.transaction
    assert fee_bump.fee_source.account_id == SPONSOR_PUBLIC

    inner_env = fee_bump.inner_transaction_envelope
    inner = inner_env.transaction
    assert inner.source.account_id == CLAIM_PUBLIC
    assert inner.sequence == ledger.sequences[CLAIM_PUBLIC] + 1
    assert len(inner.operations) == 1
    op = inner.operations[0]
    assert isinstance(op, ClaimClaimableBalance)
    assert op.balance_id == balance_id

    # One signature each: acting account inside, sponsor outside
    assert len(inner_env.signatures) == 1
    assert len(envelope.signatures) == 1
    assert _signed_by(inner_env, CLAIM_KEYPAIR)
    assert _signed_by(envelope, SPONSOR_KEYPAIR)


async def test_build_claim_expires_after_timeout(builder):
    before = int(time.time())
    envelope = await builder.build_claim(make_balance_id(), CLAIM_KEYPAIR, SPONSOR_KEYPAIR)
    after = int(time.time())

    bounds = envelope.transaction.inner_transaction_envelope.transaction.preconditions.time_bounds
    assert before + 60 <= bounds.max_time <= after + 60


async def test_build_claim_uses_network_base_fee(builder, ledger):
    ledger.base_fee = 250_000
    envelope = await builder.build_claim(make_balance_id(), CLAIM_KEYPAIR, SPONSOR_KEYPAIR)
    assert envelope.transaction.inner_transaction_envelope.transaction.fee == 250_000
    # Fee bump pays for the inner operation plus itself
    assert envelope.transaction.fee == 250_000 * 2


async def test_build_claim_unknown_account(mock_queries, ledger):
    del ledger.balances[CLAIM_PUBLIC]
    builder = SweepTransactionBuilder(mock_queries, NETWORK_PASSPHRASE)
    with pytest.raises(AccountLoadFailed):
        await builder.build_claim(make_balance_id(), CLAIM_KEYPAIR, SPONSOR_KEYPAIR)


# ── build_transfer ────────────────────────────────────────────────


async def test_build_transfer_envelope(builder, ledger):
    ledger.balances[CLAIM_PUBLIC] = Decimal("42.5000000")

    envelope, amount = await builder.build_transfer(CLAIM_KEYPAIR, SPONSOR_KEYPAIR, TARGET_ADDRESS)

    assert amount == Decimal("42.4900000")
    assert envelope.transaction.fee_source.account_id == SPONSOR_PUBLIC
    inner_env = envelope.transaction.inner_transaction_envelope
    op = inner_env.transaction.operations[0]
    assert isinstance(op, Payment)
    assert op.destination.account_id == TARGET_ADDRESS
    assert op.asset.is_native()
    assert Decimal(op.amount) == amount
    assert _signed_by(inner_env, CLAIM_KEYPAIR)
    assert _signed_by(envelope, SPONSOR_KEYPAIR)


async def test_build_transfer_zero_balance(builder, ledger):
    ledger.balances[CLAIM_PUBLIC] = Decimal("0")
    with pytest.raises(InsufficientBalance):
        await builder.build_transfer(CLAIM_KEYPAIR, SPONSOR_KEYPAIR, TARGET_ADDRESS)


async def test_build_transfer_custom_reserve_and_timeout(mock_queries, ledger):
    ledger.balances[CLAIM_PUBLIC] = Decimal("5")
    builder = SweepTransactionBuilder(
        mock_queries, NETWORK_PASSPHRASE, tx_timeout=30, reserve=Decimal("1"),
    )
    before = int(time.time())
    envelope, amount = await builder.build_transfer(CLAIM_KEYPAIR, SPONSOR_KEYPAIR, TARGET_ADDRESS)

    assert amount == Decimal("4")
    bounds = envelope.transaction.inner_transaction_envelope.transaction.preconditions.time_bounds
    assert bounds.max_time <= int(time.time()) + 30
    assert bounds.max_time >= before + 30
