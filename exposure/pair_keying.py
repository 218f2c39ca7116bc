"""
pair_keying.py - Canonical storage keys for unordered party pairs

Every bilateral ledger stores one record per unordered pair {a, b}. pack()
sorts the two identifiers numerically, hashes the sorted pair, and reports
whether the caller's argument order was reversed:

    pack(alice, bob) == (K, False)   # alice < bob
    pack(bob, alice) == (K, True)

Slot 0 of a stored record always belongs to the lower identifier. orient()
maps a caller-order pair of values to slot order and back.
"""

from __future__ import annotations
from typing import Tuple, TypeVar

from .core import (
    Party, PartyLike, PairKey, NULL_PARTY,
    IdenticalAddresses, InvalidAddress,
    normalize_party,
)
from .encoding import digest, encode_words


T = TypeVar("T")


def pack(party_a: PartyLike, party_b: PartyLike) -> Tuple[PairKey, bool]:
    """
    Derive the symmetric storage key for two parties.

    Args:
        party_a: First party in the caller's order
        party_b: Second party in the caller's order

    Returns:
        (key, flipped) where key is 32 bytes and flipped is True when
        party_a is not the lower of the two identifiers.

    Raises:
        IdenticalAddresses: If both parties are the same
        InvalidAddress: If either party is the null party or malformed
    """
    a = normalize_party(party_a)
    b = normalize_party(party_b)
    if a == b:
        raise IdenticalAddresses("Identical addresses")
    lo, hi = (a, b) if a < b else (b, a)
    if lo == NULL_PARTY:
        raise InvalidAddress("Invalid address")
    return digest(encode_words(lo, hi)), a != lo


def canonical_order(party_a: PartyLike, party_b: PartyLike) -> Tuple[Party, Party]:
    """Return the two parties as (lower, higher) after the same checks as pack()."""
    _, flipped = pack(party_a, party_b)
    a, b = normalize_party(party_a), normalize_party(party_b)
    return (b, a) if flipped else (a, b)


def orient(flipped: bool, first: T, second: T) -> Tuple[T, T]:
    """Swap a pair of values when flipped. Applying it twice is the identity."""
    return (second, first) if flipped else (first, second)


def short_key(key: bytes) -> str:
    """Abbreviated hex form of a key for log lines."""
    return key.hex()[:12]
