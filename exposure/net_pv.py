"""
net_pv.py - Bilateral net present value ledger

Tracks, per counterparty pair, the present value each side carries in two
buckets:

    unsettled: PV of deals not yet confirmed through final payment
    settled:   PV already confirmed

Unlike the collateral ledger, every subtraction here is strict. settle,
release and update raise ArithmeticOverflow, leaving the record untouched,
whenever an amount exceeds the balance it is taken from.

Example:
    netting = NetPVLedger()
    netting.use(alice, bob, 5 * ETH, 0)            # alice unsettled +5
    netting.use(alice, bob, 7 * ETH, 13 * ETH, is_settled=True)
    netting.settle(alice, bob, 3 * ETH, 0)         # alice 2 unsettled, 10 settled
    netting.get(alice, bob)                        # (2, 0, 10, 13) * ETH
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import logging

from .bilateral import BilateralLedger
from .core import (
    PartyLike, PairKey,
    require_uint, checked_add, checked_sub,
)
from .pair_keying import orient, short_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NetPVBalance:
    """
    Present value held by a pair, in canonical order.

    Attributes:
        unsettled0: Unsettled PV of the lower party identifier
        unsettled1: Unsettled PV of the higher party identifier
        settled0: Settled PV of the lower party identifier
        settled1: Settled PV of the higher party identifier
    """
    unsettled0: int = 0
    unsettled1: int = 0
    settled0: int = 0
    settled1: int = 0


class NetPVLedger(BilateralLedger):
    """Per-pair settled/unsettled PV with use/settle/release/update/clear."""

    EMPTY = NetPVBalance()

    def __init__(self, name: str = "net_pv"):
        super().__init__(name)

    def _caller_view(
        self, party0: PartyLike, party1: PartyLike,
    ) -> Tuple[PairKey, bool, Tuple[int, int], Tuple[int, int]]:
        """Key, flip flag and balances reordered to (party0, party1)."""
        key, flipped = self._resolve(party0, party1)
        balance = self._load(key)
        unsettled = orient(flipped, balance.unsettled0, balance.unsettled1)
        settled = orient(flipped, balance.settled0, balance.settled1)
        return key, flipped, unsettled, settled

    def _write(self, key: PairKey, flipped: bool, unsettled: Tuple[int, int], settled: Tuple[int, int]) -> None:
        unsettled0, unsettled1 = orient(flipped, *unsettled)
        settled0, settled1 = orient(flipped, *settled)
        self._commit(key, NetPVBalance(unsettled0, unsettled1, settled0, settled1))

    # ========================================================================
    # READ
    # ========================================================================

    def get(self, party0: PartyLike, party1: PartyLike) -> Tuple[int, int, int, int]:
        """
        PV balances in the caller's argument order.

        Returns:
            (unsettled0, unsettled1, settled0, settled1) where index 0 is party0
        """
        _, _, unsettled, settled = self._caller_view(party0, party1)
        return unsettled[0], unsettled[1], settled[0], settled[1]

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def use(
        self,
        party0: PartyLike,
        party1: PartyLike,
        amount0: int,
        amount1: int,
        is_settled: bool = False,
    ) -> None:
        """
        Add PV for both parties.

        Args:
            party0, party1: Counterparties in caller order
            amount0: PV added for party0
            amount1: PV added for party1
            is_settled: Book into the settled buckets instead of unsettled
        """
        require_uint(amount0, "amount0")
        require_uint(amount1, "amount1")
        key, flipped, unsettled, settled = self._caller_view(party0, party1)
        if amount0 == 0 and amount1 == 0:
            return
        if is_settled:
            settled = (checked_add(settled[0], amount0), checked_add(settled[1], amount1))
        else:
            unsettled = (checked_add(unsettled[0], amount0), checked_add(unsettled[1], amount1))
        self._write(key, flipped, unsettled, settled)
        logger.debug("use %s: +%d/+%d settled=%s", short_key(key), amount0, amount1, is_settled)

    def settle(self, party0: PartyLike, party1: PartyLike, amount0: int, amount1: int) -> None:
        """
        Move PV from unsettled to settled on both sides.

        Raises:
            ArithmeticOverflow: If either amount exceeds that side's unsettled PV
        """
        require_uint(amount0, "amount0")
        require_uint(amount1, "amount1")
        key, flipped, unsettled, settled = self._caller_view(party0, party1)
        unsettled = (checked_sub(unsettled[0], amount0), checked_sub(unsettled[1], amount1))
        settled = (checked_add(settled[0], amount0), checked_add(settled[1], amount1))
        self._write(key, flipped, unsettled, settled)
        logger.debug("settle %s: %d/%d", short_key(key), amount0, amount1)

    def release(
        self,
        party0: PartyLike,
        party1: PartyLike,
        amount0: int,
        amount1: int,
        is_settled: bool = False,
    ) -> None:
        """
        Remove PV from both sides.

        Args:
            is_settled: Take from the settled buckets instead of unsettled

        Raises:
            ArithmeticOverflow: If either amount exceeds the bucket it is taken from
        """
        require_uint(amount0, "amount0")
        require_uint(amount1, "amount1")
        key, flipped, unsettled, settled = self._caller_view(party0, party1)
        if is_settled:
            settled = (checked_sub(settled[0], amount0), checked_sub(settled[1], amount1))
        else:
            unsettled = (checked_sub(unsettled[0], amount0), checked_sub(unsettled[1], amount1))
        self._write(key, flipped, unsettled, settled)
        logger.debug("release %s: %d/%d settled=%s", short_key(key), amount0, amount1, is_settled)

    def update(
        self,
        party0: PartyLike,
        party1: PartyLike,
        prev_amount0: int,
        prev_amount1: int,
        new_amount0: int,
        new_amount1: int,
    ) -> None:
        """
        Revalue previously settled PV: settled - prev + new on each side.

        Only the previous amounts are bounded (prev <= settled); the new
        amounts are taken as given.

        Raises:
            ArithmeticOverflow: If a previous amount exceeds that side's settled PV
        """
        for name, value in (
            ("prev_amount0", prev_amount0), ("prev_amount1", prev_amount1),
            ("new_amount0", new_amount0), ("new_amount1", new_amount1),
        ):
            require_uint(value, name)
        key, flipped, unsettled, settled = self._caller_view(party0, party1)
        settled = (
            checked_add(checked_sub(settled[0], prev_amount0), new_amount0),
            checked_add(checked_sub(settled[1], prev_amount1), new_amount1),
        )
        self._write(key, flipped, unsettled, settled)
        logger.debug(
            "update %s: %d->%d / %d->%d",
            short_key(key), prev_amount0, new_amount0, prev_amount1, new_amount1,
        )

    def clear(self, party0: PartyLike, party1: PartyLike) -> None:
        """Zero all four balances of the pair."""
        key, _ = self._resolve(party0, party1)
        self._commit(key, self.EMPTY)
        logger.debug("clear %s", short_key(key))
