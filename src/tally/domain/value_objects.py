"""Module including value objects used across the domain layer."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from tally.domain.errors import InvalidAddressError, MalformedTransactionError

ADDRESS_LENGTH = 20
UINT256_MAX = 2**256 - 1


@dataclass(frozen=True, slots=True, order=True)
class Address:
    """A 20-byte account identifier derived from a public key."""

    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, bytes) or len(self.raw) != ADDRESS_LENGTH:
            raise InvalidAddressError(
                f"An address must be exactly {ADDRESS_LENGTH} bytes."
            )

    @classmethod
    def from_hex(cls, text: str) -> Address:
        """Parse a hex address, with or without the `0x` prefix (any case).

        Raises:
            InvalidAddressError: If the text is not 40 hex digits.
        """
        if not isinstance(text, str):
            raise InvalidAddressError(f"An address must be hex text, got {text!r}")
        digits = text[2:] if text[:2].lower() == "0x" else text
        if len(digits) != 2 * ADDRESS_LENGTH:
            raise InvalidAddressError(f"Not a 20-byte hex address: {text!r}")
        try:
            return cls(bytes.fromhex(digits))
        except ValueError as e:
            raise InvalidAddressError(f"Not a 20-byte hex address: {text!r}") from e

    @property
    def hex(self) -> str:
        """The `0x`-prefixed lowercase hex form."""
        return "0x" + self.raw.hex()

    def __str__(self) -> str:
        return self.hex


class TransactionKind(Enum):
    """Enumeration of the transaction kinds the ledger accepts."""

    REGISTER = "register"
    TRANSFER_DOMAIN = "transfer-domain"
    TRANSFER_TOKEN = "transfer-token"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    COLLECT_FEES = "collect-fees"


_NEEDS_DOMAIN = {TransactionKind.REGISTER, TransactionKind.TRANSFER_DOMAIN}
_NEEDS_RECIPIENT = {TransactionKind.TRANSFER_DOMAIN, TransactionKind.TRANSFER_TOKEN}


@dataclass(frozen=True, slots=True)
class Transaction:
    """A request to mutate the ledger, authorized by the sender's signature.

    `amount` is the quantity the operation moves: the fee attached to a
    registration, the value of a deposit, the tokens of a transfer, or the value
    requested by a withdrawal.
    """

    # pylint: disable=too-many-instance-attributes

    sender: Address
    kind: TransactionKind
    nonce: int
    domain: str | None = None
    recipient: Address | None = None
    amount: int = 0
    signature: bytes | None = None

    def __post_init__(self) -> None:
        if self.nonce < 0:
            raise MalformedTransactionError("nonce must be >= 0")
        if not 0 <= self.amount <= UINT256_MAX:
            raise MalformedTransactionError("amount must fit in an unsigned 256-bit integer")
        if self.kind in _NEEDS_DOMAIN and not (self.domain and self.domain.strip()):
            raise MalformedTransactionError(f"{self.kind.value} requires a domain name")
        if self.kind in _NEEDS_RECIPIENT and self.recipient is None:
            raise MalformedTransactionError(f"{self.kind.value} requires a recipient")

    @property
    def payload(self) -> bytes:
        """Canonical bytes covered by the signature (every field but the signature)."""
        return json.dumps(
            self._unsigned_dict(), sort_keys=True, separators=(",", ":")
        ).encode("utf-8")

    def with_signature(self, signature: bytes) -> Transaction:
        """Return a copy of this transaction carrying `signature`."""
        return replace(self, signature=signature)

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation (signature as hex or None)."""
        data = self._unsigned_dict()
        data["signature"] = self.signature.hex() if self.signature is not None else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        """Build a transaction from the output of `to_dict`.

        ``nonce`` and ``amount`` may be JSON integers or strings of decimal
        digits. Floats are refused rather than rounded, so a signed transaction
        always moves the exact amount that was written.

        Raises:
            MalformedTransactionError: If required keys are missing or invalid.
            InvalidAddressError: If an address field cannot be parsed.
        """
        if not isinstance(data, dict):
            raise MalformedTransactionError(
                f"A transaction must be a JSON object, got {type(data).__name__}"
            )
        try:
            kind = TransactionKind(data["kind"])
            sender = Address.from_hex(data["sender"])
            nonce = parse_quantity("nonce", data["nonce"])
        except KeyError as e:
            raise MalformedTransactionError(f"Missing transaction field {e}") from e
        except InvalidAddressError:
            raise
        except (TypeError, ValueError) as e:
            raise MalformedTransactionError(str(e)) from e
        amount = parse_quantity("amount", data.get("amount", 0))

        domain = _optional_str(data, "domain")
        recipient = _optional_str(data, "recipient")
        signature = _optional_str(data, "signature")
        try:
            raw_signature = bytes.fromhex(signature) if signature else None
        except ValueError as e:
            raise MalformedTransactionError("signature must be hex encoded") from e
        return cls(
            sender=sender,
            kind=kind,
            nonce=nonce,
            domain=domain,
            recipient=Address.from_hex(recipient) if recipient else None,
            amount=amount,
            signature=raw_signature,
        )

    def _unsigned_dict(self) -> dict[str, Any]:
        return {
            "sender": self.sender.hex,
            "kind": self.kind.value,
            "nonce": self.nonce,
            "domain": self.domain,
            "recipient": self.recipient.hex if self.recipient is not None else None,
            # decimal string keeps uint256 values exact in any JSON reader
            "amount": str(self.amount),
        }


def parse_quantity(name: str, value: Any) -> int:
    """Read a non-float quantity: an int, or a string of ASCII decimal digits.

    Raises:
        MalformedTransactionError: For floats, bools and any other value.
    """
    # bool is an int subclass; a JSON true is never a quantity
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    raise MalformedTransactionError(
        f"{name} must be an integer or a string of decimal digits, got {value!r}"
    )


def _optional_str(data: dict[str, Any], name: str) -> str | None:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise MalformedTransactionError(
            f"{name} must be a string, got {type(value).__name__}"
        )
    return value
