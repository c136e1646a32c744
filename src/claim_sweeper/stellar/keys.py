"""Deterministic keypair derivation from a BIP-39 recovery phrase."""

from __future__ import annotations

import logging

from bip_utils import Bip32Slip10Ed25519, Bip39MnemonicValidator, Bip39SeedGenerator
from stellar_sdk import Keypair

from claim_sweeper.errors import InvalidMnemonic
from claim_sweeper.models.config import PI_DERIVATION_PATH

log = logging.getLogger(__name__)


def normalize_mnemonic(mnemonic: str) -> str:
    """Collapse whitespace and lowercase the phrase."""
    return " ".join(mnemonic.lower().split())


def keypair_from_mnemonic(mnemonic: str, path: str = PI_DERIVATION_PATH) -> Keypair:
    """Derive an ed25519 keypair along a hardened SLIP-10 path.

    The derived 32-byte private key is used directly as the signing seed,
    so the same phrase and path always give the same keypair.

    Raises:
        InvalidMnemonic: the phrase is empty or fails the BIP-39 checksum.
    """
    phrase = normalize_mnemonic(mnemonic or "")
    if not phrase or not Bip39MnemonicValidator().IsValid(phrase):
        raise InvalidMnemonic("Mnemonic is not a valid BIP-39 phrase")

    seed = Bip39SeedGenerator(phrase).Generate()
    derived = Bip32Slip10Ed25519.FromSeed(seed).DerivePath(path)
    keypair = Keypair.from_raw_ed25519_seed(derived.PrivateKey().Raw().ToBytes())
    log.debug("Derived %s at %s", keypair.public_key, path)
    return keypair
