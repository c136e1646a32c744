"""Data models for the claim_sweeper agent."""

from claim_sweeper.models.records import (
    AccountState,
    Claimant,
    ClaimableBalanceRecord,
    CycleReport,
    SubmitResult,
    SweepResult,
    SweepStatus,
)
from claim_sweeper.models.config import (
    NETWORKS,
    PI_DERIVATION_PATH,
    STELLAR_DERIVATION_PATH,
    NetworkPreset,
    SweeperConfig,
)

__all__ = [
    "AccountState", "Claimant", "ClaimableBalanceRecord", "CycleReport",
    "SubmitResult", "SweepResult", "SweepStatus",
    "NETWORKS", "PI_DERIVATION_PATH", "STELLAR_DERIVATION_PATH",
    "NetworkPreset", "SweeperConfig",
]
