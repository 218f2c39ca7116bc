"""
encoding.py - Word encoding, digests and settlement ids

Fixed-width encodings used to derive every deterministic identifier in the
package. Values are laid out as 32-byte big-endian words (the layout of
`abi.encode`) or, for settlement ids, tightly packed.

    encode_uint(5)          -> 31 zero bytes + 0x05
    encode_words(a, b)      -> word(a) || word(b)
    encode_string("0xLoan") -> word(0x20) || word(len) || right-padded bytes

The digest is SHA3-256. Same inputs always produce the same 32 bytes.
"""

from __future__ import annotations
import hashlib

from .core import (
    PartyLike, InputValidationError,
    normalize_party, require_uint,
)


WORD_BYTES = 32


def digest(data: bytes) -> bytes:
    """Return the 32-byte SHA3-256 digest of data."""
    return hashlib.sha3_256(data).digest()


def encode_uint(value: int) -> bytes:
    """Encode an unsigned 256-bit integer as a 32-byte big-endian word."""
    return require_uint(value, "word").to_bytes(WORD_BYTES, "big")


def encode_words(*values: int) -> bytes:
    """Concatenate the word encodings of several unsigned integers."""
    return b"".join(encode_uint(v) for v in values)


def encode_string(text: str) -> bytes:
    """
    Encode a single dynamic string argument.

    Layout: offset word (always 0x20 for a lone argument), length word,
    then the UTF-8 bytes right-padded to a multiple of 32.
    """
    raw = text.encode("utf-8")
    padding = (-len(raw)) % WORD_BYTES
    return encode_words(WORD_BYTES, len(raw)) + raw + b"\x00" * padding


def to_bytes32(text: str) -> bytes:
    """
    Convert ASCII text (a currency code, a tx hash label) to a right-padded bytes32.

    Raises:
        ValueError: If the encoded text is longer than 32 bytes.
    """
    raw = text.encode("ascii")
    if len(raw) > WORD_BYTES:
        raise ValueError(f"text longer than 32 bytes: {text!r}")
    return raw.ljust(WORD_BYTES, b"\x00")


def from_bytes32(value: bytes) -> str:
    """Inverse of to_bytes32: strip trailing zero padding and decode."""
    return value.rstrip(b"\x00").decode("ascii")


def native_settlement_id(
    party0: PartyLike,
    party1: PartyLike,
    ccy: bytes,
    payment: int,
    slot_time: int,
) -> bytes:
    """
    Compute the proof hash of an on-platform payment.

    Packed layout: address(20) || address(20) || ccy(32) || payment(32) || slot_time(32).
    Party order is significant: the payer is party0.

    Args:
        party0: Paying party
        party1: Receiving party
        ccy: 32-byte currency code (see to_bytes32)
        payment: Amount paid
        slot_time: Timestamp of the time slot being paid

    Returns:
        32-byte proof hash suitable for TimeSlotLedger.verify_payment
    """
    if len(ccy) != WORD_BYTES:
        raise InputValidationError(f"ccy must be 32 bytes, got {len(ccy)}")
    packed = (
        normalize_party(party0).to_bytes(20, "big")
        + normalize_party(party1).to_bytes(20, "big")
        + ccy
        + encode_uint(payment)
        + encode_uint(slot_time)
    )
    return digest(packed)


def crosschain_settlement_id(tx_hash: str) -> bytes:
    """Compute the proof hash of a payment settled on another chain from its tx hash."""
    return digest(tx_hash.encode("utf-8"))
