"""
bilateral.py - Shared storage for pair-keyed ledgers

BilateralLedger holds one immutable record per storage key. Subclasses build
a replacement record, validate it completely, and only then commit it, so a
failing call never leaves a partial write behind.

Records equal to the subclass's EMPTY value are never stored: an absent key
reads as EMPTY, and committing EMPTY deletes the key.
"""

from __future__ import annotations
from typing import Any, Dict, Hashable, Tuple
import copy

from .core import PartyLike, PairKey
from .pair_keying import pack


class BilateralLedger:
    """
    Base class for the collateral, net PV and time slot ledgers.

    Subclasses set EMPTY to their all-zero record type instance.

    Thread Safety:
        Not thread-safe. The host serializes calls; each call is one
        atomic state transition.
    """

    EMPTY: Any = None

    def __init__(self, name: str):
        self.name = name
        self._records: Dict[Hashable, Any] = {}

    @staticmethod
    def _resolve(party0: PartyLike, party1: PartyLike) -> Tuple[PairKey, bool]:
        """Pair key and flip flag for a caller-order pair."""
        return pack(party0, party1)

    def _load(self, key: Hashable) -> Any:
        return self._records.get(key, self.EMPTY)

    def _commit(self, key: Hashable, record: Any) -> None:
        if record == self.EMPTY:
            self._records.pop(key, None)
        else:
            self._records[key] = record

    def __len__(self) -> int:
        """Number of non-empty records."""
        return len(self._records)

    def clone(self) -> BilateralLedger:
        """
        Create an independent copy of this ledger.

        Records are frozen, so copying the index is enough: later writes to
        either ledger do not affect the other.
        """
        cloned = copy.copy(self)
        cloned._records = dict(self._records)
        return cloned
