"""secp256k1 key management, signing and verification.

Keys follow the usual account-wallet conventions:

- recovery phrases are BIP-39 (`mnemonic`), hardened derivation is BIP-32 with
  the default account path ``m/44'/60'/0'/0/0``;
- an address is the last 20 bytes of keccak-256 over the uncompressed public
  key without its ``0x04`` prefix (`pycryptodome` provides keccak);
- signatures are ECDSA over SHA-256 (`cryptography`), prefixed with the
  signer's 65-byte uncompressed public key so a verifier holding only an
  address can check them.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets

from Crypto.Hash import keccak
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from mnemonic import Mnemonic

from tally.domain.errors import (
    EntropyUnavailableError,
    InvalidDerivationPathError,
    InvalidSeedPhraseError,
    KeyDerivationError,
)
from tally.domain.value_objects import ADDRESS_LENGTH, Address
from tally.interfaces.keys import KeyManager, KeyPair, Signer, Verifier

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods

CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
HARDENED_OFFSET = 2**31
DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/0"
PRIVATE_KEY_LENGTH = 32
PUBLIC_KEY_LENGTH = 65
BIP32_SEED_KEY = b"Bitcoin seed"

_ECDSA = ec.ECDSA(hashes.SHA256())


# ============================================================================
#                               Helpers
# ============================================================================


def keccak256(data: bytes) -> bytes:
    """Return the keccak-256 digest of `data` (pre-standard SHA-3 padding)."""
    return keccak.new(digest_bits=256, data=data).digest()


def to_checksum_address(address: Address) -> str:
    """Render `address` in its mixed-case EIP-55 checksummed form."""
    digits = address.raw.hex()
    digest = keccak256(digits.encode("ascii")).hex()
    return "0x" + "".join(
        char.upper() if int(digest[i], 16) >= 8 else char
        for i, char in enumerate(digits)
    )


def parse_derivation_path(path: str) -> list[int]:
    """Parse ``m/44'/60'/0'/0/0`` into child indexes (hardened ones offset by 2**31).

    Raises:
        InvalidDerivationPathError: If the path is not of that form.
    """
    parts = path.strip().split("/")
    if not parts or parts[0] != "m":
        raise InvalidDerivationPathError(path)

    indexes = []
    for part in parts[1:]:
        hardened = part.endswith(("'", "h", "H"))
        digits = part[:-1] if hardened else part
        if not digits.isdigit() or int(digits) >= HARDENED_OFFSET:
            raise InvalidDerivationPathError(path)
        indexes.append(int(digits) + (HARDENED_OFFSET if hardened else 0))
    return indexes


def _private_key_object(private_key: bytes) -> ec.EllipticCurvePrivateKey:
    return ec.derive_private_key(int.from_bytes(private_key, "big"), ec.SECP256K1())


def _public_bytes(private_key: bytes, *, compressed: bool = False) -> bytes:
    public_format = (
        serialization.PublicFormat.CompressedPoint
        if compressed
        else serialization.PublicFormat.UncompressedPoint
    )
    return (
        _private_key_object(private_key)
        .public_key()
        .public_bytes(serialization.Encoding.X962, public_format)
    )


def _is_valid_scalar(value: int) -> bool:
    return 0 < value < CURVE_ORDER


# ============================================================================
#                             Key manager
# ============================================================================


class Secp256k1KeyManager(KeyManager):
    """BIP-39/BIP-32 key manager on secp256k1."""

    def __init__(self, language: str = "english") -> None:
        self._mnemonic = Mnemonic(language)

    def generate_random(self) -> KeyPair:
        try:
            while True:
                candidate = secrets.token_bytes(PRIVATE_KEY_LENGTH)
                if _is_valid_scalar(int.from_bytes(candidate, "big")):
                    break
        except NotImplementedError as e:
            raise EntropyUnavailableError("No secure random source available.") from e

        key_pair = self._key_pair(candidate)
        logger.debug("Generated random keypair for %s", key_pair.address)
        return key_pair

    def new_seed_phrase(self, strength: int = 128) -> str:
        try:
            return self._mnemonic.generate(strength=strength)
        except NotImplementedError as e:
            raise EntropyUnavailableError("No secure random source available.") from e

    def derive_from_seed_phrase(
        self, phrase: str, *, passphrase: str = "", path: str | None = None
    ) -> KeyPair:
        words = " ".join(phrase.split())
        if not words or not self._mnemonic.check(words):
            raise InvalidSeedPhraseError(
                "Recovery phrase has unknown words, a wrong length or a bad checksum."
            )

        path = path or DEFAULT_DERIVATION_PATH
        indexes = parse_derivation_path(path)
        seed = Mnemonic.to_seed(words, passphrase=passphrase)

        private_key, chain_code = self._master_key(seed)
        for index in indexes:
            private_key, chain_code = self._child_key(private_key, chain_code, index)

        key_pair = self._key_pair(private_key, seed_phrase=words, path=path)
        logger.debug("Derived keypair for %s at %s", key_pair.address, path)
        return key_pair

    def address_of(self, public_key: bytes) -> Address:
        if len(public_key) != PUBLIC_KEY_LENGTH or public_key[0] != 0x04:
            raise ValueError("Expected a 65-byte uncompressed secp256k1 public key.")
        return Address(keccak256(public_key[1:])[-ADDRESS_LENGTH:])

    # --- BIP-32 ---

    @staticmethod
    def _master_key(seed: bytes) -> tuple[bytes, bytes]:
        digest = hmac.new(BIP32_SEED_KEY, seed, hashlib.sha512).digest()
        key, chain_code = digest[:32], digest[32:]
        if not _is_valid_scalar(int.from_bytes(key, "big")):
            raise KeyDerivationError("Seed produced an invalid master key.")
        return key, chain_code

    @staticmethod
    def _child_key(key: bytes, chain_code: bytes, index: int) -> tuple[bytes, bytes]:
        if index >= HARDENED_OFFSET:
            data = b"\x00" + key + index.to_bytes(4, "big")
        else:
            data = _public_bytes(key, compressed=True) + index.to_bytes(4, "big")

        digest = hmac.new(chain_code, data, hashlib.sha512).digest()
        tweak = int.from_bytes(digest[:32], "big")
        child = (tweak + int.from_bytes(key, "big")) % CURVE_ORDER
        if tweak >= CURVE_ORDER or child == 0:
            raise KeyDerivationError(f"Child index {index} yields an invalid key.")
        return child.to_bytes(PRIVATE_KEY_LENGTH, "big"), digest[32:]

    def _key_pair(
        self,
        private_key: bytes,
        *,
        seed_phrase: str | None = None,
        path: str | None = None,
    ) -> KeyPair:
        public_key = _public_bytes(private_key)
        return KeyPair(
            private_key=private_key,
            public_key=public_key,
            address=self.address_of(public_key),
            seed_phrase=seed_phrase,
            path=path,
        )


# ============================================================================
#                         Signing and verification
# ============================================================================


class EcdsaSigner(Signer):
    """ECDSA/SHA-256 signer producing ``public key || DER signature``."""

    def sign(self, private_key: bytes, payload: bytes) -> bytes:
        key = _private_key_object(private_key)
        public_key = key.public_key().public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint
        )
        return public_key + key.sign(payload, _ECDSA)


class EcdsaVerifier(Verifier):
    """Verifier for signatures produced by `EcdsaSigner`."""

    def __init__(self, key_manager: KeyManager | None = None) -> None:
        self._key_manager = key_manager or Secp256k1KeyManager()

    def verify(self, address: Address, payload: bytes, signature: bytes) -> bool:
        if len(signature) <= PUBLIC_KEY_LENGTH:
            return False
        public_bytes, der = signature[:PUBLIC_KEY_LENGTH], signature[PUBLIC_KEY_LENGTH:]

        try:
            if self._key_manager.address_of(public_bytes) != address:
                return False
            public_key = ec.EllipticCurvePublicKey.from_encoded_point(
                ec.SECP256K1(), public_bytes
            )
            public_key.verify(der, payload, _ECDSA)
        except (InvalidSignature, ValueError):
            return False
        return True
