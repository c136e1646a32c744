"""Protocol interfaces for all claim_sweeper components."""

from claim_sweeper.interfaces.queries import LedgerQueries
from claim_sweeper.interfaces.builder import TransactionBuilder
from claim_sweeper.interfaces.submitter import TransactionSubmitter

__all__ = [
    "LedgerQueries",
    "TransactionBuilder",
    "TransactionSubmitter",
]
