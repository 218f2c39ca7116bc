"""
deal_id.py - Deal identifier generation and product prefixes

A deal identifier is a 256-bit integer: the 4-byte product prefix occupies
the top 32 bits and a per-product counter the low 224 bits.

    prefix  = 0x21aaa47b
    counter = 12
    id      = 0x21aaa47b00000000...0000000c

The prefix routes an identifier to its product logic (see ProductRegistry);
the counter makes it unique within the product.
"""

from __future__ import annotations
import logging
from typing import Union

from .core import (
    DealId, Prefix,
    PREFIX_BYTES, DEAL_COUNTER_BITS, DEAL_COUNTER_LIMIT, UINT256_MAX,
    InputValidationError, InvalidPrefix, NumberOverflow,
)
from .encoding import digest, encode_string


logger = logging.getLogger(__name__)

PrefixLike = Union[bytes, str]
DealIdLike = Union[int, bytes, str]


def normalize_prefix(prefix: PrefixLike) -> Prefix:
    """
    Convert a prefix to 4 raw bytes.

    Accepts 4 bytes or a 0x-prefixed hex string of exactly 8 hex digits.

    Raises:
        InvalidPrefix: If the value is not a 4-byte prefix.
    """
    if isinstance(prefix, str):
        text = prefix.strip()
        if not text.lower().startswith("0x") or len(text) != 2 + 2 * PREFIX_BYTES:
            raise InvalidPrefix(f"Invalid prefix: {prefix!r}")
        try:
            return bytes.fromhex(text[2:])
        except ValueError:
            raise InvalidPrefix(f"Invalid prefix: {prefix!r}") from None
    if isinstance(prefix, (bytes, bytearray)) and len(prefix) == PREFIX_BYTES:
        return bytes(prefix)
    raise InvalidPrefix(f"Invalid prefix: {prefix!r}")


def normalize_deal_id(deal_id: DealIdLike) -> DealId:
    """Convert a deal id given as int, 32 bytes or 0x-prefixed hex to an int."""
    if isinstance(deal_id, bool):
        raise InputValidationError(f"Invalid deal id: {deal_id!r}")
    if isinstance(deal_id, int):
        value = deal_id
    elif isinstance(deal_id, (bytes, bytearray)) and len(deal_id) == 32:
        value = int.from_bytes(deal_id, "big")
    elif isinstance(deal_id, str) and deal_id.lower().startswith("0x"):
        try:
            value = int(deal_id, 16)
        except ValueError:
            raise InputValidationError(f"Invalid deal id: {deal_id!r}") from None
    else:
        raise InputValidationError(f"Invalid deal id: {deal_id!r}")
    if value < 0 or value > UINT256_MAX:
        raise InputValidationError(f"Deal id out of range: {deal_id!r}")
    return value


def generate(prefix: PrefixLike, counter: int) -> DealId:
    """
    Pack a product prefix and a counter into one deal identifier.

    Args:
        prefix: 4-byte product prefix
        counter: Per-product deal number, 0 <= counter < 2**224

    Returns:
        (prefix << 224) | counter

    Raises:
        NumberOverflow: If counter does not fit in 224 bits
        InvalidPrefix: If prefix is not 4 bytes
    """
    raw = normalize_prefix(prefix)
    if isinstance(counter, bool) or not isinstance(counter, int) or counter < 0:
        raise InputValidationError(f"counter must be a non-negative int, got {counter!r}")
    if counter >= DEAL_COUNTER_LIMIT:
        raise NumberOverflow("NUMBER_OVERFLOW")
    return (int.from_bytes(raw, "big") << DEAL_COUNTER_BITS) | counter


def get_prefix(deal_id: DealIdLike) -> Prefix:
    """Extract the 4-byte product prefix from the top 32 bits of a deal id."""
    value = normalize_deal_id(deal_id)
    return (value >> DEAL_COUNTER_BITS).to_bytes(PREFIX_BYTES, "big")


def get_counter(deal_id: DealIdLike) -> int:
    """Extract the 224-bit counter from a deal id."""
    return normalize_deal_id(deal_id) & (DEAL_COUNTER_LIMIT - 1)


def format_deal_id(deal_id: DealIdLike) -> str:
    """Render a deal id as a 0x-prefixed 64-digit hex string."""
    return f"0x{normalize_deal_id(deal_id):064x}"


def format_prefix(prefix: PrefixLike) -> str:
    """Render a prefix as a 0x-prefixed 8-digit hex string."""
    return "0x" + normalize_prefix(prefix).hex()


def product_prefix(name: str) -> Prefix:
    """
    Derive a product prefix from a product name.

    The prefix is the first four bytes of the digest of the encoded name,
    so the same name always maps to the same prefix.

    Example:
        loan = product_prefix("0xLoan")
        deal = generate(loan, 1)
    """
    return digest(encode_string(name))[:PREFIX_BYTES]


class DealIdGenerator:
    """
    Monotonic deal id source for one product.

    Counters start at 1. A failed generation (counter exhausted) leaves the
    generator unchanged.

    Example:
        ids = DealIdGenerator(product_prefix("0xLoan"))
        first = ids.next_id()    # counter 1
        second = ids.next_id()   # counter 2
    """

    def __init__(self, prefix: PrefixLike, last_counter: int = 0):
        self.prefix = normalize_prefix(prefix)
        if isinstance(last_counter, bool) or not isinstance(last_counter, int) or last_counter < 0:
            raise InputValidationError(f"last_counter must be a non-negative int, got {last_counter!r}")
        self._last_counter = last_counter

    @property
    def last_counter(self) -> int:
        """Counter of the most recently issued id (0 before the first)."""
        return self._last_counter

    def next_id(self) -> DealId:
        """Issue the next deal id for this product."""
        counter = self._last_counter + 1
        deal_id = generate(self.prefix, counter)
        self._last_counter = counter
        logger.debug("Issued deal %s", format_deal_id(deal_id))
        return deal_id
