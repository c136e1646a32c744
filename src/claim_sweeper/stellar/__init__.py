"""Stellar/Horizon integration components."""

from claim_sweeper.stellar.builder import SweepTransactionBuilder, compute_transferable
from claim_sweeper.stellar.keys import keypair_from_mnemonic
from claim_sweeper.stellar.queries import ClaimableBalanceQueries
from claim_sweeper.stellar.submitter import HorizonSubmitter

__all__ = [
    "ClaimableBalanceQueries",
    "HorizonSubmitter",
    "SweepTransactionBuilder",
    "compute_transferable",
    "keypair_from_mnemonic",
]
