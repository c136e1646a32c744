"""CLI entry point for the claim sweeper."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from dotenv import load_dotenv

from claim_sweeper.config import load_config, validate_config
from claim_sweeper.daemon import SweeperDaemon, run_daemon
from claim_sweeper.errors import ConfigError, InvalidMnemonic, QueryFailed
from claim_sweeper.models.config import SweeperConfig
from claim_sweeper.policy.eligibility import seconds_until_claimable
from claim_sweeper.stellar.keys import keypair_from_mnemonic


def _mask(secret: str) -> str:
    return "***configured***" if secret else "(not set)"


def _load(ctx: click.Context) -> SweeperConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _require_valid(cfg: SweeperConfig) -> None:
    """Exit with error if the configuration cannot start a sweeper."""
    try:
        validate_config(cfg)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        click.echo("Set CLAIM_MNEMONIC, SPONSOR_MNEMONIC and TARGET_ADDRESS "
                   "in the environment or .env file.", err=True)
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """claim-sweeper - claim unlocked balances and sweep them to a target address."""
    load_dotenv()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    cfg = _load(ctx)
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the sweeper loop."""
    cfg = _load(ctx)
    _require_valid(cfg)

    click.echo(f"Starting claim sweeper on {cfg.network}")
    try:
        asyncio.run(run_daemon(cfg))
    except InvalidMnemonic as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective configuration."""
    cfg = _load(ctx)
    click.echo(f"Network:        {cfg.network}")
    click.echo(f"Horizon:        {cfg.resolved_horizon_url or '(not set)'}")
    click.echo(f"Passphrase:     {cfg.resolved_passphrase or '(not set)'}")
    click.echo(f"Path:           {cfg.resolved_derivation_path}")
    click.echo(f"Poll interval:  {cfg.poll_interval}s")
    click.echo(f"Error backoff:  {cfg.error_backoff}s")
    click.echo(f"Tx timeout:     {cfg.tx_timeout}s")
    click.echo(f"Reserve:        {cfg.reserve}")
    click.echo(f"Claim phrase:   {_mask(cfg.claim_mnemonic)}")
    click.echo(f"Sponsor phrase: {_mask(cfg.sponsor_mnemonic)}")
    click.echo(f"Target:         {cfg.target_address or '(not set)'}")


@cli.command()
@click.pass_context
def accounts(ctx: click.Context) -> None:
    """Derive and print the claim and sponsor addresses."""
    cfg = _load(ctx)
    path = cfg.resolved_derivation_path
    for label, phrase in (("Claim", cfg.claim_mnemonic), ("Sponsor", cfg.sponsor_mnemonic)):
        if not phrase:
            click.echo(f"{label + ':':<9} (not set)")
            continue
        try:
            click.echo(f"{label + ':':<9} {keypair_from_mnemonic(phrase, path).public_key}")
        except InvalidMnemonic as exc:
            click.echo(f"{label + ':':<9} invalid ({exc})", err=True)
            sys.exit(1)
    click.echo(f"{'Target:':<9} {cfg.target_address or '(not set)'}")


@cli.command()
@click.pass_context
def balances(ctx: click.Context) -> None:
    """List claimable balances of the claim account. Submits nothing."""
    cfg = _load(ctx)
    _require_valid(cfg)

    async def _balances():
        daemon = SweeperDaemon(cfg)
        queries = daemon.queries
        try:
            records = await queries.get_claimable_balances(daemon.claim_address)
        except QueryFailed as exc:
            click.echo(f"Query failed: {exc}", err=True)
            sys.exit(1)
        finally:
            await daemon.close()

        click.echo(f"Account: {daemon.claim_address}")
        click.echo(f"Found {len(records)} claimable balance(s)")
        for record in records:
            wait = seconds_until_claimable(record, daemon.claim_address)
            if wait is None:
                state = "not claimable"
            elif wait == 0:
                state = "claimable now"
            else:
                state = f"locked for {wait}s"
            click.echo(f"  {record.balance_id}  {record.amount} {record.asset}  {state}")

    try:
        asyncio.run(_balances())
    except InvalidMnemonic as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
