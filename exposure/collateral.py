"""
collateral.py - Bilateral collateral position ledger

Tracks collateral each party has locked against one counterparty:

    (alice, bob) -> locked0 = alice's collateral, locked1 = bob's collateral

Release operations are permissive. withdraw, liquidate and rebalance move
min(requested, available) and never fail for lack of balance; each returns
the amount actually moved. A zero deposit, and any release against an empty
position, changes nothing.

Example:
    positions = CollateralLedger()
    positions.deposit(alice, bob, 2 * ETH)
    positions.deposit(bob, alice, 5 * ETH)
    positions.withdraw(alice, bob, 5 * ETH)   # returns 2 * ETH
    positions.get(alice, bob)                 # (0, 5 * ETH)
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Tuple
import logging

from .bilateral import BilateralLedger
from .core import (
    PartyLike, PairKey,
    require_uint, checked_add, saturating_sub,
)
from .pair_keying import orient, short_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CollateralPosition:
    """
    Locked collateral for one pair, in canonical order.

    Attributes:
        locked0: Collateral of the lower party identifier
        locked1: Collateral of the higher party identifier
    """
    locked0: int = 0
    locked1: int = 0


class CollateralLedger(BilateralLedger):
    """Per-pair locked collateral with deposit/withdraw/liquidate/rebalance."""

    EMPTY = CollateralPosition()

    def __init__(self, name: str = "collateral"):
        super().__init__(name)

    # ========================================================================
    # READ
    # ========================================================================

    def get(self, party0: PartyLike, party1: PartyLike) -> Tuple[int, int]:
        """
        Locked collateral of a pair in the caller's argument order.

        Returns:
            (collateral locked by party0, collateral locked by party1)
        """
        key, flipped = self._resolve(party0, party1)
        position = self._load(key)
        return orient(flipped, position.locked0, position.locked1)

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def _own_side(
        self, party: PartyLike, counterparty: PartyLike,
    ) -> Tuple[PairKey, bool, CollateralPosition, int]:
        """Key, stored position and the locked amount belonging to party."""
        key, flipped = self._resolve(party, counterparty)
        position = self._load(key)
        own = position.locked1 if flipped else position.locked0
        return key, flipped, position, own

    @staticmethod
    def _with_own(position: CollateralPosition, flipped: bool, amount: int) -> CollateralPosition:
        if flipped:
            return replace(position, locked1=amount)
        return replace(position, locked0=amount)

    def deposit(self, party0: PartyLike, party1: PartyLike, amount: int) -> None:
        """
        Lock amount of party0's collateral in its position with party1.

        A zero amount is a no-op.

        Raises:
            ArithmeticOverflow: If the balance would exceed UINT256_MAX
        """
        require_uint(amount)
        key, flipped, position, own = self._own_side(party0, party1)
        if amount == 0:
            return
        self._commit(key, self._with_own(position, flipped, checked_add(own, amount)))
        logger.debug("deposit %s: +%d (flipped=%s)", short_key(key), amount, flipped)

    def withdraw(self, party0: PartyLike, party1: PartyLike, amount: int) -> int:
        """
        Release up to amount of party0's collateral from its position with party1.

        Requests above the locked balance withdraw everything available.

        Returns:
            The amount actually withdrawn.
        """
        require_uint(amount)
        key, flipped, position, own = self._own_side(party0, party1)
        moved = min(amount, own)
        if moved == 0:
            return 0
        self._commit(key, self._with_own(position, flipped, saturating_sub(own, amount)))
        logger.debug("withdraw %s: -%d of %d requested", short_key(key), moved, amount)
        return moved

    def liquidate(self, from_party: PartyLike, to_party: PartyLike, amount: int) -> int:
        """
        Move up to amount of from_party's collateral to to_party within their position.

        Amounts beyond from_party's locked balance are dropped, not moved.

        Returns:
            The amount actually moved.
        """
        require_uint(amount)
        key, flipped = self._resolve(from_party, to_party)
        position = self._load(key)
        source, target = orient(flipped, position.locked0, position.locked1)
        moved = min(amount, source)
        if moved == 0:
            return 0
        new_source = saturating_sub(source, amount)
        new_target = checked_add(target, moved)
        locked0, locked1 = orient(flipped, new_source, new_target)
        self._commit(key, CollateralPosition(locked0, locked1))
        logger.debug("liquidate %s: %d moved of %d requested", short_key(key), moved, amount)
        return moved

    def rebalance(
        self,
        party: PartyLike,
        src: PartyLike,
        dst: PartyLike,
        amount: int,
    ) -> int:
        """
        Shift up to amount of party's collateral from its position with src to its position with dst.

        Total collateral locked by party across the two positions is conserved.

        Returns:
            The amount actually moved.
        """
        require_uint(amount)
        src_key, src_flipped, src_position, available = self._own_side(party, src)
        dst_key, dst_flipped, dst_position, existing = self._own_side(party, dst)
        moved = min(amount, available)
        if moved == 0 or src_key == dst_key:
            return 0
        new_src = self._with_own(src_position, src_flipped, saturating_sub(available, amount))
        new_dst = self._with_own(dst_position, dst_flipped, checked_add(existing, moved))
        self._commit(src_key, new_src)
        self._commit(dst_key, new_dst)
        logger.debug(
            "rebalance %s -> %s: %d moved of %d requested",
            short_key(src_key), short_key(dst_key), moved, amount,
        )
        return moved

    def clear(self, party0: PartyLike, party1: PartyLike) -> None:
        """Zero both sides of the position unconditionally."""
        key, _ = self._resolve(party0, party1)
        self._commit(key, self.EMPTY)
        logger.debug("clear %s", short_key(key))
