"""Key management and signature adapters."""

from .secp256k1 import (
    DEFAULT_DERIVATION_PATH,
    EcdsaSigner,
    EcdsaVerifier,
    Secp256k1KeyManager,
    to_checksum_address,
)

__all__ = [
    "DEFAULT_DERIVATION_PATH",
    "EcdsaSigner",
    "EcdsaVerifier",
    "Secp256k1KeyManager",
    "to_checksum_address",
]
