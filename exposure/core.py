"""
Core types and pure functions for the bilateral exposure ledgers.

This module provides the foundational pieces shared by every ledger:
1. Constants: fixed-width bounds, null party, calendar range
2. Exceptions: ExposureError and the domain-specific error types
3. Type aliases: Party, PairKey, Prefix, DealId
4. Party helpers: normalize_party, format_party
5. Arithmetic: require_uint, checked_add, checked_sub, saturating_sub

All functions in this module are pure. No function here touches ledger state.
"""

from __future__ import annotations
from datetime import date
from typing import Union


# ============================================================================
# CONSTANTS
# ============================================================================

# All balances are unsigned 256-bit integers.
UINT256_MAX = 2 ** 256 - 1

# Parties are 160-bit account identifiers. Zero is the null party.
PARTY_BITS = 160
PARTY_MAX = 2 ** PARTY_BITS - 1
NULL_PARTY = 0

# Deal identifiers: 4-byte product prefix in the high bits, counter in the low 224.
PREFIX_BYTES = 4
DEAL_COUNTER_BITS = 224
DEAL_COUNTER_LIMIT = 2 ** DEAL_COUNTER_BITS

# Supported calendar range for time slot positions.
MIN_SLOT_DATE = date(1970, 1, 1)
MAX_SLOT_DATE = date(2345, 12, 31)


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Account identifier as an unsigned integer (160-bit).
Party = int

# Anything normalize_party() accepts: an int or a 0x-prefixed hex address.
PartyLike = Union[int, str]

# Symmetric 32-byte storage key for an unordered pair of parties.
PairKey = bytes

# 4-byte product-type tag.
Prefix = bytes

# Wide (256-bit) deal identifier.
DealId = int


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ExposureError(Exception):
    """Base exception for all exposure-ledger errors."""
    pass


class InputValidationError(ExposureError):
    """Raised when call arguments are malformed. Always fails before any write."""
    pass


class IdenticalAddresses(InputValidationError):
    """Raised when both sides of a pair are the same party."""
    pass


class InvalidAddress(InputValidationError):
    """Raised for the null party or an identifier outside the 160-bit range."""
    pass


class InvalidAmount(InputValidationError):
    """Raised when an amount is not an unsigned 256-bit integer."""
    pass


class InvalidDate(InputValidationError):
    """Raised when a time slot date is not a real date inside the supported range."""
    pass


class InvalidPrefix(InputValidationError):
    """Raised when a product prefix is not exactly four bytes."""
    pass


class InvalidInputLengths(InputValidationError):
    """Raised when batched registry inputs have different lengths."""
    pass


class NonContractAddress(InputValidationError):
    """Raised when a registry target is not a deployed contract."""
    pass


class NumberOverflow(InputValidationError):
    """Raised when a deal counter does not fit in 224 bits."""
    pass


class DuplicatePaymentProof(InputValidationError):
    """Raised when a payment proof hash was already recorded for a time slot."""
    pass


class ArithmeticOverflow(ExposureError):
    """Raised when a strict ledger would go below zero or above UINT256_MAX."""
    pass


class PaymentOverflow(ArithmeticOverflow):
    """Raised when verified payments would exceed a time slot's net payment."""
    pass


class TimeSlotSettled(ExposureError):
    """Raised when mutating a time slot that has already been confirmed."""
    pass


class InvalidAccess(ExposureError):
    """Raised when a non-owner attempts an owner-only operation."""
    pass


# ============================================================================
# PARTY HELPERS
# ============================================================================

def normalize_party(value: PartyLike) -> Party:
    """
    Convert a party identifier to its integer form.

    Accepts an int in [0, 2**160) or a 0x-prefixed hex string of at most
    40 hex digits (case-insensitive, checksum casing is not verified).
    The null party (0) is accepted here; pair keying rejects it.

    Raises:
        InvalidAddress: If the value cannot be read as a 160-bit identifier.
    """
    if isinstance(value, bool):
        raise InvalidAddress(f"Invalid address: {value!r}")
    if isinstance(value, int):
        party = value
    elif isinstance(value, str):
        text = value.strip()
        if not text.lower().startswith("0x") or len(text) > 42:
            raise InvalidAddress(f"Invalid address: {value!r}")
        try:
            party = int(text[2:], 16) if len(text) > 2 else 0
        except ValueError:
            raise InvalidAddress(f"Invalid address: {value!r}") from None
    else:
        raise InvalidAddress(f"Invalid address type: {type(value).__name__}")
    if party < 0 or party > PARTY_MAX:
        raise InvalidAddress(f"Address out of range: {value!r}")
    return party


def format_party(party: PartyLike) -> str:
    """Render a party as a lowercase 0x-prefixed 40-digit hex address."""
    return f"0x{normalize_party(party):040x}"


# ============================================================================
# ARITHMETIC
# ============================================================================
#
# Two subtraction policies:
#   - saturating_sub: permissive ledgers (collateral) cap at zero
#   - checked_sub:    strict ledgers (net PV, time slots) fail instead
#

def require_uint(value: int, name: str = "amount") -> int:
    """
    Validate that a value is an unsigned 256-bit integer.

    Raises:
        InvalidAmount: For non-integers, booleans, negatives, or values above UINT256_MAX.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise InvalidAmount(f"{name} out of uint256 range: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    """Add two unsigned values, raising ArithmeticOverflow above UINT256_MAX."""
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflow(f"addition overflow: {a} + {b}")
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract b from a, raising ArithmeticOverflow if the result would be negative."""
    if b > a:
        raise ArithmeticOverflow(f"subtraction overflow: {a} - {b}")
    return a - b


def saturating_sub(a: int, b: int) -> int:
    """Subtract b from a, capping the result at zero."""
    return a - b if a > b else 0
