"""Shared fixtures for claim_sweeper tests."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pytest_metadata.plugin import metadata_key

from claim_sweeper.daemon import SweeperDaemon
from claim_sweeper.models.config import SweeperConfig
from claim_sweeper.stellar.builder import SweepTransactionBuilder
from claim_sweeper.stellar.keys import keypair_from_mnemonic

from tests.mocks import MockLedger, MockQueries, MockSubmitter

# BIP-39 reference vectors; all pass the checksum
CLAIM_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
SPONSOR_MNEMONIC = (
    "legal winner thank year wave sausage worth useful "
    "legal winner thank yellow"
)
TARGET_MNEMONIC = (
    "letter advice cage absurd amount doctor acoustic "
    "avoid letter advice cage above"
)

CLAIM_KEYPAIR = keypair_from_mnemonic(CLAIM_MNEMONIC)
SPONSOR_KEYPAIR = keypair_from_mnemonic(SPONSOR_MNEMONIC)
TARGET_ADDRESS = keypair_from_mnemonic(TARGET_MNEMONIC).public_key

CLAIM_PUBLIC = CLAIM_KEYPAIR.public_key
SPONSOR_PUBLIC = SPONSOR_KEYPAIR.public_key

HORIZON_URL = "https://horizon.example.test"
NETWORK_PASSPHRASE = "Pi Testnet"

# Fixed wall clock for eligibility decisions
NOW = 1_750_000_000


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add account info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = NETWORK_PASSPHRASE
    meta["Claim Account"] = CLAIM_PUBLIC
    meta["Sponsor Account"] = SPONSOR_PUBLIC
    meta["Target Account"] = TARGET_ADDRESS


def pytest_html_results_summary(prefix, summary, postfix):
    """Show the accounts used by the suite above the results table."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Sweeper test accounts</strong><br/>"
        f"Claim: {CLAIM_PUBLIC}<br/>"
        f"Sponsor: {SPONSOR_PUBLIC}<br/>"
        f"Target: {TARGET_ADDRESS}"
        "</div>"
    )


def make_test_config(**overrides) -> SweeperConfig:
    """Build a SweeperConfig suitable for testing."""
    defaults = dict(
        network="pi-testnet",
        horizon_url=HORIZON_URL,
        network_passphrase=NETWORK_PASSPHRASE,
        claim_mnemonic=CLAIM_MNEMONIC,
        sponsor_mnemonic=SPONSOR_MNEMONIC,
        target_address=TARGET_ADDRESS,
        poll_interval=0.01,
        error_backoff=0.01,
        tx_timeout=60,
        reserve=Decimal("0.01"),
    )
    defaults.update(overrides)
    return SweeperConfig(**defaults)


async def wire_daemon(cfg: SweeperConfig, ledger: MockLedger, now: int = NOW) -> SweeperDaemon:
    """SweeperDaemon whose network components are backed by ``ledger``."""
    d = SweeperDaemon(cfg, clock=lambda: now)
    await d.queries.close()
    d.queries = MockQueries(ledger)
    d.builder = SweepTransactionBuilder(
        d.queries, cfg.resolved_passphrase, tx_timeout=cfg.tx_timeout, reserve=cfg.reserve,
    )
    d.submitter = MockSubmitter(ledger)
    return d


@pytest.fixture
def test_config():
    """Default SweeperConfig for tests."""
    return make_test_config()


@pytest.fixture
def ledger():
    """In-memory ledger with funded claim and target accounts."""
    lg = MockLedger()
    lg.fund(CLAIM_PUBLIC, Decimal("0"))
    lg.fund(SPONSOR_PUBLIC, Decimal("100"))
    lg.fund(TARGET_ADDRESS, Decimal("1"))
    return lg


@pytest.fixture
def mock_queries(ledger):
    return MockQueries(ledger)


@pytest.fixture
def mock_submitter(ledger):
    return MockSubmitter(ledger)


@pytest.fixture
async def daemon(test_config, ledger):
    """Fully wired SweeperDaemon with mocked network components."""
    return await wire_daemon(test_config, ledger)
