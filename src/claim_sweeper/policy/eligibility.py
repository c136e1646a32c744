"""Claim eligibility - decides whether a balance can be claimed right now.

Only the ``not: {abs_before_epoch: T}`` predicate shape is interpreted
("not claimable before T"). Any other shape (relative time, and/or,
unconditional) falls through to "no not-before value", i.e. claimable.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, Sequence

from claim_sweeper.models.records import Claimant, ClaimableBalanceRecord

log = logging.getLogger(__name__)


def find_claimant(claimants: Iterable[Claimant], address: str) -> Claimant | None:
    """Return the first claimant entry addressed to ``address``."""
    for claimant in claimants:
        if claimant.destination == address:
            return claimant
    return None


def _not_before_epoch(claimant: Claimant) -> int | None:
    raw = claimant.not_before
    if raw is None:
        return None
    return int(raw)


def is_claimable_now(
    claimants: Sequence[Claimant],
    address: str,
    now: int | None = None,
) -> bool:
    """True if ``address`` may claim the balance at epoch second ``now``.

    The threshold is exclusive: at ``now == not_before`` the balance is
    still locked.
    """
    claimant = find_claimant(claimants, address)
    if claimant is None:
        return False

    try:
        not_before = _not_before_epoch(claimant)
    except ValueError:
        log.debug("Unparseable abs_before_epoch %r", claimant.not_before)
        return False
    if not_before is None:
        return True

    if now is None:
        now = int(time.time())
    return now > not_before


def seconds_until_claimable(
    record: ClaimableBalanceRecord,
    address: str,
    now: int | None = None,
) -> int | None:
    """Seconds left before the not-before threshold passes.

    Returns 0 when claimable now, None when ``address`` is not a claimant
    or the threshold cannot be read.
    """
    claimant = find_claimant(record.claimants, address)
    if claimant is None:
        return None
    try:
        not_before = _not_before_epoch(claimant)
    except ValueError:
        return None
    if not_before is None:
        return 0
    if now is None:
        now = int(time.time())
    return max(0, not_before + 1 - now)
