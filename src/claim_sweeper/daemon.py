"""Main daemon loop - wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal
import time
from typing import Callable

from claim_sweeper.errors import ClaimRejectedByRace, QueryFailed, SweeperError
from claim_sweeper.interfaces import LedgerQueries, TransactionBuilder, TransactionSubmitter
from claim_sweeper.models.config import SweeperConfig
from claim_sweeper.models.records import (
    ClaimableBalanceRecord,
    CycleReport,
    SweepResult,
    SweepStatus,
)
from claim_sweeper.policy.eligibility import is_claimable_now
from claim_sweeper.stellar.builder import SweepTransactionBuilder
from claim_sweeper.stellar.keys import keypair_from_mnemonic
from claim_sweeper.stellar.queries import ClaimableBalanceQueries
from claim_sweeper.stellar.submitter import HorizonSubmitter

log = logging.getLogger(__name__)


class SweeperDaemon:
    """Claims eligible balances and sweeps them to the target address.

    Each cycle fetches the claimable balances of the claim account, and
    for every balance that is claimable now submits a claim followed by
    a transfer of the claim account's native balance. Both transactions
    are fee-bumped by the sponsor account. Records are handled strictly
    one after another.
    """

    def __init__(
        self,
        cfg: SweeperConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cfg = cfg
        self._clock = clock
        self._running = False
        self._stopped = asyncio.Event()

        path = cfg.resolved_derivation_path
        self.claim_keypair = keypair_from_mnemonic(cfg.claim_mnemonic, path)
        self.sponsor_keypair = keypair_from_mnemonic(cfg.sponsor_mnemonic, path)
        self.target_address = cfg.target_address

        # Core components
        queries = ClaimableBalanceQueries(
            cfg.resolved_horizon_url,
            page_limit=cfg.page_limit,
            request_timeout=cfg.request_timeout,
        )
        self.queries: LedgerQueries = queries
        self.builder: TransactionBuilder = SweepTransactionBuilder(
            self.queries,
            cfg.resolved_passphrase,
            tx_timeout=cfg.tx_timeout,
            reserve=cfg.reserve,
        )
        self.submitter: TransactionSubmitter = HorizonSubmitter(queries.server)

    @property
    def claim_address(self) -> str:
        return self.claim_keypair.public_key

    @property
    def running(self) -> bool:
        return self._running

    def _now(self) -> int:
        return int(self._clock())

    async def start(self) -> None:
        """Run the polling loop until stop() is called."""
        log.info("Starting claim sweeper")
        log.info("  Network: %s", self._cfg.network)
        log.info("  Horizon: %s", self._cfg.resolved_horizon_url)
        log.info("  Claim account: %s", self.claim_address)
        log.info("  Sponsor account: %s", self.sponsor_keypair.public_key)
        log.info("  Target: %s", self.target_address)

        self._running = True
        self._stopped.clear()
        try:
            await self._main_loop()
        finally:
            self._running = False
            await self.close()
            log.info("Sweeper shut down cleanly")

    async def stop(self) -> None:
        """Signal the loop to stop after the current step."""
        log.info("Stop requested")
        self._running = False
        self._stopped.set()

    async def close(self) -> None:
        await self.queries.close()

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking early when stop() is called."""
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _main_loop(self) -> None:
        """Poll, sweep, pause; never exits on a failed cycle."""
        while self._running:
            try:
                report = await self.run_cycle()
                if report.eligible:
                    log.info(
                        "Cycle done: %d fetched, %d swept, %d lost race, %d failed",
                        report.fetched, report.swept, report.race_lost, report.failed,
                    )
                await self._sleep(self._cfg.poll_interval)

            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except QueryFailed as exc:
                log.error("Failed to fetch claimable balances: %s", exc)
                await self._sleep(self._cfg.error_backoff)
            except Exception as exc:
                log.error("Main loop error: %s", exc, exc_info=True)
                await self._sleep(self._cfg.error_backoff)

    async def run_cycle(self) -> CycleReport:
        """Fetch balances once and sweep every one claimable now.

        Raises:
            QueryFailed: the balance query failed; nothing was attempted.
        """
        records = await self.queries.get_claimable_balances(self.claim_address)
        report = CycleReport(fetched=len(records))

        for record in records:
            if not is_claimable_now(record.claimants, self.claim_address, self._now()):
                log.debug("Balance %s is still locked", record.balance_id[:16])
                report.add(SweepResult(
                    status=SweepStatus.LOCKED,
                    balance_id=record.balance_id,
                    amount=record.amount,
                ))
                continue
            report.add(await self._sweep(record))

        return report

    async def _sweep(self, record: ClaimableBalanceRecord) -> SweepResult:
        """Claim one balance, then transfer the proceeds to the target."""
        balance_id = record.balance_id

        # 1. Claim
        try:
            envelope = await self.builder.build_claim(
                balance_id, self.claim_keypair, self.sponsor_keypair,
            )
            claim = await self.submitter.submit(envelope)
        except ClaimRejectedByRace as exc:
            log.warning("Balance %s already claimed by another agent (%s)", balance_id[:16], exc)
            return SweepResult(
                status=SweepStatus.RACE_LOST,
                balance_id=balance_id,
                amount=record.amount,
                error=str(exc),
            )
        except SweeperError as exc:
            log.error("Claim failed for balance %s: %s", balance_id[:16], exc)
            return SweepResult(
                status=SweepStatus.CLAIM_FAILED,
                balance_id=balance_id,
                amount=record.amount,
                error=str(exc),
            )
        except Exception as exc:
            log.error("Claim error for balance %s: %s", balance_id[:16], exc, exc_info=True)
            return SweepResult(
                status=SweepStatus.CLAIM_FAILED,
                balance_id=balance_id,
                amount=record.amount,
                error=str(exc),
            )

        log.info(
            "Claimed %s %s from balance %s (tx=%s)",
            record.amount, record.asset, balance_id[:16], claim.tx_hash[:16],
        )

        # 2. Transfer
        try:
            envelope, amount = await self.builder.build_transfer(
                self.claim_keypair, self.sponsor_keypair, self.target_address,
            )
            transfer = await self.submitter.submit(envelope)
        except SweeperError as exc:
            log.error("Transfer to %s failed: %s", self.target_address[:8], exc)
            return self._transfer_failed(record, claim.tx_hash, exc)
        except Exception as exc:
            log.error("Transfer error: %s", exc, exc_info=True)
            return self._transfer_failed(record, claim.tx_hash, exc)

        log.info(
            "Transferred %s to %s (tx=%s)",
            amount, self.target_address, transfer.tx_hash[:16],
        )
        return SweepResult(
            status=SweepStatus.SWEPT,
            balance_id=balance_id,
            amount=record.amount,
            claim_tx_hash=claim.tx_hash,
            transfer_tx_hash=transfer.tx_hash,
            transferred=amount,
        )

    @staticmethod
    def _transfer_failed(
        record: ClaimableBalanceRecord, claim_tx_hash: str, exc: Exception,
    ) -> SweepResult:
        return SweepResult(
            status=SweepStatus.TRANSFER_FAILED,
            balance_id=record.balance_id,
            amount=record.amount,
            claim_tx_hash=claim_tx_hash,
            error=str(exc),
        )


async def run_daemon(cfg: SweeperConfig) -> None:
    """Entry point for running the daemon."""
    daemon = SweeperDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
