"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from stellar_sdk import StrKey

from claim_sweeper.errors import ConfigError
from claim_sweeper.models.config import NETWORKS, SweeperConfig
from claim_sweeper.stellar.queries import MAX_PAGE_LIMIT

ENV_PREFIX = "SWEEPER_"

# Secret names shared with existing deployments of the bot
ENV_CLAIM_MNEMONIC = "CLAIM_MNEMONIC"
ENV_SPONSOR_MNEMONIC = "SPONSOR_MNEMONIC"
ENV_TARGET_ADDRESS = "TARGET_ADDRESS"


def _decimal(value: object, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigError(f"{name} is not a number: {value!r}") from exc


def _float(value: object, name: str) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} is not a number: {value!r}") from exc


def _int(value: object, name: str) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} is not an integer: {value!r}") from exc


def load_config(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> SweeperConfig:
    """Load sweeper configuration from a TOML file and environment variables.

    Priority (highest wins):
        1. Environment variables (CLAIM_MNEMONIC, SWEEPER_NETWORK, etc.)
        2. TOML config file
        3. Defaults from SweeperConfig
    """
    if env is None:
        env = os.environ

    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            try:
                with open(p, "rb") as f:
                    raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{p}: {exc}") from exc

    cfg = SweeperConfig()

    # ── Sweeper section ────────────────────────────────────
    sweeper = raw.get("sweeper", {})
    if (v := sweeper.get("poll_interval")) is not None:
        cfg.poll_interval = _float(v, "poll_interval")
    if (v := sweeper.get("error_backoff")) is not None:
        cfg.error_backoff = _float(v, "error_backoff")
    if v := sweeper.get("log_level"):
        cfg.log_level = str(v)

    # ── Network section ────────────────────────────────────
    network = raw.get("network", {})
    if v := network.get("name"):
        cfg.network = str(v)
    if v := network.get("horizon_url"):
        cfg.horizon_url = str(v)
    if v := network.get("network_passphrase"):
        cfg.network_passphrase = str(v)
    if v := network.get("derivation_path"):
        cfg.derivation_path = str(v)
    if (v := network.get("request_timeout")) is not None:
        cfg.request_timeout = _float(v, "request_timeout")

    # ── Accounts section ───────────────────────────────────
    accounts = raw.get("accounts", {})
    if v := accounts.get("claim_mnemonic"):
        cfg.claim_mnemonic = str(v)
    if v := accounts.get("sponsor_mnemonic"):
        cfg.sponsor_mnemonic = str(v)
    if v := accounts.get("target_address"):
        cfg.target_address = str(v)

    # ── Transactions section ───────────────────────────────
    txs = raw.get("transactions", {})
    if (v := txs.get("page_limit")) is not None:
        cfg.page_limit = _int(v, "page_limit")
    if (v := txs.get("timeout")) is not None:
        cfg.tx_timeout = _int(v, "timeout")
    if (v := txs.get("reserve")) is not None:
        cfg.reserve = _decimal(v, "reserve")

    # ── Environment variable overrides (highest priority) ──
    if v := env.get(ENV_CLAIM_MNEMONIC):
        cfg.claim_mnemonic = v
    if v := env.get(ENV_SPONSOR_MNEMONIC):
        cfg.sponsor_mnemonic = v
    if v := env.get(ENV_TARGET_ADDRESS):
        cfg.target_address = v.strip()
    if v := env.get(f"{env_prefix}NETWORK"):
        cfg.network = v
    if v := env.get(f"{env_prefix}HORIZON_URL"):
        cfg.horizon_url = v
    if v := env.get(f"{env_prefix}NETWORK_PASSPHRASE"):
        cfg.network_passphrase = v
    if v := env.get(f"{env_prefix}DERIVATION_PATH"):
        cfg.derivation_path = v
    if v := env.get(f"{env_prefix}POLL_INTERVAL"):
        cfg.poll_interval = _float(v, "poll_interval")
    if v := env.get(f"{env_prefix}ERROR_BACKOFF"):
        cfg.error_backoff = _float(v, "error_backoff")
    if v := env.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = v

    return cfg


def validate_config(cfg: SweeperConfig) -> None:
    """Check everything the daemon needs before it starts.

    Mnemonic checksums are verified later, when the keys are derived.

    Raises:
        ConfigError: listing every problem found.
    """
    problems: list[str] = []

    if not cfg.claim_mnemonic:
        problems.append(f"claim mnemonic not set ({ENV_CLAIM_MNEMONIC})")
    if not cfg.sponsor_mnemonic:
        problems.append(f"sponsor mnemonic not set ({ENV_SPONSOR_MNEMONIC})")
    if not cfg.target_address:
        problems.append(f"target address not set ({ENV_TARGET_ADDRESS})")
    elif not StrKey.is_valid_ed25519_public_key(cfg.target_address):
        problems.append(f"target address is not a valid account id: {cfg.target_address}")

    if cfg.network not in NETWORKS and not (cfg.horizon_url and cfg.network_passphrase):
        problems.append(
            f"unknown network {cfg.network!r}; set horizon_url and network_passphrase"
        )
    if cfg.poll_interval < 0:
        problems.append("poll_interval must be >= 0")
    if cfg.error_backoff < 0:
        problems.append("error_backoff must be >= 0")
    if cfg.request_timeout <= 0:
        problems.append("request_timeout must be > 0")
    if cfg.tx_timeout <= 0:
        problems.append("transaction timeout must be > 0")
    if cfg.reserve < 0:
        problems.append("reserve must be >= 0")
    if not 1 <= cfg.page_limit <= MAX_PAGE_LIMIT:
        problems.append(f"page_limit must be between 1 and {MAX_PAGE_LIMIT}")

    if problems:
        raise ConfigError("; ".join(problems))
