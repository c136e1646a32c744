"""Configuration models for the sweeper."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

PI_DERIVATION_PATH = "m/44'/314159'/0'"
STELLAR_DERIVATION_PATH = "m/44'/148'/0'"


@dataclass(frozen=True)
class NetworkPreset:
    """Horizon endpoint and passphrase for a known network."""

    horizon_url: str
    network_passphrase: str
    derivation_path: str


NETWORKS: dict[str, NetworkPreset] = {
    "pi-mainnet": NetworkPreset(
        "https://api.mainnet.minepi.com", "Pi Network", PI_DERIVATION_PATH,
    ),
    "pi-testnet": NetworkPreset(
        "https://api.testnet.minepi.com", "Pi Testnet", PI_DERIVATION_PATH,
    ),
    "stellar-mainnet": NetworkPreset(
        "https://horizon.stellar.org",
        "Public Global Stellar Network ; September 2015",
        STELLAR_DERIVATION_PATH,
    ),
    "stellar-testnet": NetworkPreset(
        "https://horizon-testnet.stellar.org",
        "Test SDF Network ; September 2015",
        STELLAR_DERIVATION_PATH,
    ),
}


@dataclass
class SweeperConfig:
    """Complete sweeper configuration.

    Empty network fields are resolved from the NETWORKS preset named by
    ``network``; see ``resolved_*`` accessors.
    """

    # Loop
    poll_interval: float = 1.0  # seconds between cycles
    error_backoff: float = 5.0  # seconds after a failed cycle
    log_level: str = "info"

    # Network
    network: str = "pi-mainnet"
    horizon_url: str = ""
    network_passphrase: str = ""
    derivation_path: str = ""
    request_timeout: float = 30.0

    # Accounts (secrets normally come from the environment)
    claim_mnemonic: str = ""
    sponsor_mnemonic: str = ""
    target_address: str = ""

    # Transactions
    page_limit: int = 200
    tx_timeout: int = 60  # seconds an envelope stays valid
    reserve: Decimal = Decimal("0.01")  # native units kept in the claim account

    @property
    def preset(self) -> NetworkPreset | None:
        return NETWORKS.get(self.network)

    @property
    def resolved_horizon_url(self) -> str:
        if self.horizon_url:
            return self.horizon_url
        return self.preset.horizon_url if self.preset else ""

    @property
    def resolved_passphrase(self) -> str:
        if self.network_passphrase:
            return self.network_passphrase
        return self.preset.network_passphrase if self.preset else ""

    @property
    def resolved_derivation_path(self) -> str:
        if self.derivation_path:
            return self.derivation_path
        return self.preset.derivation_path if self.preset else PI_DERIVATION_PATH
