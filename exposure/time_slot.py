"""
time_slot.py - Date-bucketed bilateral payment ledger

Each (pair, calendar date) owns one slot that accumulates the gross payments
both parties owe each other on that date and nets them:

    totals (5000, 10000)  ->  net_payment 5000, owed by party1

A slot goes through two distinct notions of "settled":

    is_settled    balance parity: the gross totals net to zero
    is_confirmed  external settlement: verified payments, each backed by a
                  proof hash, add up to the net payment

Once a slot is confirmed, add_payment, remove_payment and verify_payment
fail with TimeSlotSettled until the slot is cleared. clear() zeroes the slot
but keeps its payment confirmations, which stay readable by proof hash.
While a slot is open, the verified amount caps the net from below: a payment
change that would net to less than what is already verified fails.

Dates are addressed by position(year, month, day), a digest of the three
fields encoded as fixed-width words. Only real dates inside
[1970-01-01, 2345-12-31] have a position.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Tuple
import logging

from .bilateral import BilateralLedger
from .core import (
    Party, PartyLike, PairKey, NULL_PARTY,
    MIN_SLOT_DATE, MAX_SLOT_DATE,
    InputValidationError, InvalidDate, DuplicatePaymentProof,
    PaymentOverflow, TimeSlotSettled,
    normalize_party, require_uint, checked_add, checked_sub,
)
from .encoding import digest, encode_words
from .pair_keying import orient, short_key


logger = logging.getLogger(__name__)

Position = bytes


# ============================================================================
# POSITIONS
# ============================================================================

def position(year: int, month: int, day: int) -> Position:
    """
    Digest identifying one calendar date.

    Raises:
        InvalidDate: If the fields do not form a real date in the supported range
    """
    for value in (year, month, day):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidDate(f"Invalid date: {year}-{month}-{day}")
    try:
        slot_date = date(year, month, day)
    except ValueError:
        raise InvalidDate(f"Invalid date: {year}-{month}-{day}") from None
    if not MIN_SLOT_DATE <= slot_date <= MAX_SLOT_DATE:
        raise InvalidDate(f"Date outside supported range: {slot_date.isoformat()}")
    return digest(encode_words(year, month, day))


def position_of(slot_date: date) -> Position:
    """position() for a datetime.date (or datetime) value."""
    return position(slot_date.year, slot_date.month, slot_date.day)


def _require_position(value: Position) -> Position:
    if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
        raise InputValidationError(f"position must be 32 bytes, got {value!r}")
    return bytes(value)


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class TimeSlotPosition:
    """
    Stored state of one slot, in canonical order.

    Attributes:
        total_payment0: Gross amount owed by the lower party identifier
        total_payment1: Gross amount owed by the higher party identifier
        net_payment: |total_payment0 - total_payment1|
        flipped: True when party1 owes the net payment
        is_settled: True when the totals net to zero
        confirmed_amount: Sum of verified payments
        is_confirmed: True once confirmed_amount reached net_payment
    """
    total_payment0: int = 0
    total_payment1: int = 0
    net_payment: int = 0
    flipped: bool = False
    is_settled: bool = True
    confirmed_amount: int = 0
    is_confirmed: bool = False


@dataclass(frozen=True, slots=True)
class TimeSlotView:
    """
    A slot as seen from the caller's argument order.

    total_payment0 is owed by the first argument, total_payment1 by the
    second, and flipped is True when the second argument owes the net.
    """
    total_payment0: int
    total_payment1: int
    net_payment: int
    flipped: bool
    is_settled: bool
    confirmed_amount: int
    is_confirmed: bool


@dataclass(frozen=True, slots=True)
class PaymentConfirmation:
    """
    A verified payment recorded against a slot.

    Attributes:
        verification_party: Party that verified the payment
        amount: Verified amount
    """
    verification_party: Party = NULL_PARTY
    amount: int = 0


def _netted(slot: TimeSlotPosition, total0: int, total1: int) -> TimeSlotPosition:
    """
    Slot with new totals and recomputed net, direction and parity.

    The net may not drop below what has already been verified. A net that
    lands exactly on a non-zero verified amount confirms the slot.

    Raises:
        PaymentOverflow: If the new net is below confirmed_amount
    """
    net = total0 - total1 if total0 >= total1 else total1 - total0
    if net < slot.confirmed_amount:
        raise PaymentOverflow("Payment overflow")
    return replace(
        slot,
        total_payment0=total0,
        total_payment1=total1,
        net_payment=net,
        flipped=total1 > total0,
        is_settled=net == 0,
        is_confirmed=slot.confirmed_amount > 0 and net == slot.confirmed_amount,
    )


# ============================================================================
# LEDGER
# ============================================================================

class TimeSlotLedger(BilateralLedger):
    """Per-pair, per-date gross payments with proof-backed confirmation."""

    EMPTY = TimeSlotPosition()

    position = staticmethod(position)
    position_of = staticmethod(position_of)

    def __init__(self, name: str = "time_slot"):
        super().__init__(name)
        self._confirmations: Dict[Tuple[PairKey, Position, bytes], PaymentConfirmation] = {}

    def _slot(
        self, party0: PartyLike, party1: PartyLike, slot_position: Position,
    ) -> Tuple[Tuple[PairKey, Position], bool, TimeSlotPosition]:
        key, flipped = self._resolve(party0, party1)
        slot_key = (key, _require_position(slot_position))
        return slot_key, flipped, self._load(slot_key)

    def clone(self) -> TimeSlotLedger:
        cloned = super().clone()
        cloned._confirmations = dict(self._confirmations)
        return cloned

    # ========================================================================
    # READ
    # ========================================================================

    def get(self, party0: PartyLike, party1: PartyLike, slot_position: Position) -> TimeSlotView:
        """Slot state in the caller's argument order (all zero if never used)."""
        _, flipped, slot = self._slot(party0, party1, slot_position)
        total0, total1 = orient(flipped, slot.total_payment0, slot.total_payment1)
        return TimeSlotView(
            total_payment0=total0,
            total_payment1=total1,
            net_payment=slot.net_payment,
            flipped=total1 > total0,
            is_settled=slot.is_settled,
            confirmed_amount=slot.confirmed_amount,
            is_confirmed=slot.is_confirmed,
        )

    def is_confirmed(self, party0: PartyLike, party1: PartyLike, slot_position: Position) -> bool:
        """True once verified payments have covered the slot's net payment."""
        _, _, slot = self._slot(party0, party1, slot_position)
        return slot.is_confirmed

    def get_payment_confirmation(
        self,
        party0: PartyLike,
        party1: PartyLike,
        slot_position: Position,
        proof_hash: bytes,
    ) -> PaymentConfirmation:
        """Confirmation recorded under proof_hash, or an empty one if none exists."""
        slot_key, _, _ = self._slot(party0, party1, slot_position)
        return self._confirmations.get(slot_key + (bytes(proof_hash),), PaymentConfirmation())

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def add_payment(
        self,
        party0: PartyLike,
        party1: PartyLike,
        slot_position: Position,
        amount0: int,
        amount1: int,
    ) -> None:
        """
        Add gross payments owed by party0 (amount0) and party1 (amount1) on this date.

        Raises:
            TimeSlotSettled: If the slot is already confirmed
            PaymentOverflow: If the new net payment would fall below the verified amount
        """
        require_uint(amount0, "amount0")
        require_uint(amount1, "amount1")
        slot_key, flipped, slot = self._slot(party0, party1, slot_position)
        if slot.is_confirmed:
            raise TimeSlotSettled("TIMESLOT SETTLED ALREADY")
        add0, add1 = orient(flipped, amount0, amount1)
        total0 = checked_add(slot.total_payment0, add0)
        total1 = checked_add(slot.total_payment1, add1)
        self._commit(slot_key, _netted(slot, total0, total1))
        logger.debug("add_payment %s: +%d/+%d", short_key(slot_key[0]), amount0, amount1)

    def remove_payment(
        self,
        party0: PartyLike,
        party1: PartyLike,
        slot_position: Position,
        amount0: int,
        amount1: int,
    ) -> None:
        """
        Remove gross payments previously added for this date.

        Raises:
            TimeSlotSettled: If the slot is already confirmed
            ArithmeticOverflow: If an amount exceeds the recorded total for that side
            PaymentOverflow: If the new net payment would fall below the verified amount
        """
        require_uint(amount0, "amount0")
        require_uint(amount1, "amount1")
        slot_key, flipped, slot = self._slot(party0, party1, slot_position)
        if slot.is_confirmed:
            raise TimeSlotSettled("TIMESLOT SETTLED ALREADY")
        sub0, sub1 = orient(flipped, amount0, amount1)
        total0 = checked_sub(slot.total_payment0, sub0)
        total1 = checked_sub(slot.total_payment1, sub1)
        self._commit(slot_key, _netted(slot, total0, total1))
        logger.debug("remove_payment %s: -%d/-%d", short_key(slot_key[0]), amount0, amount1)

    def verify_payment(
        self,
        verifier: PartyLike,
        counterparty: PartyLike,
        slot_position: Position,
        amount: int,
        proof_hash: bytes,
    ) -> None:
        """
        Record a proof-backed payment of amount for the slot, attributed to verifier.

        When the cumulative verified amount reaches the net payment the slot
        becomes confirmed.

        Raises:
            TimeSlotSettled: If the slot is already confirmed
            DuplicatePaymentProof: If proof_hash was already recorded for this slot
            PaymentOverflow: If cumulative verified would exceed the net payment
        """
        require_uint(amount)
        if not isinstance(proof_hash, (bytes, bytearray)) or len(proof_hash) != 32:
            raise InputValidationError(f"proof_hash must be 32 bytes, got {proof_hash!r}")
        slot_key, _, slot = self._slot(verifier, counterparty, slot_position)
        if slot.is_confirmed:
            raise TimeSlotSettled("TIMESLOT SETTLED ALREADY")
        confirmation_key = slot_key + (bytes(proof_hash),)
        if confirmation_key in self._confirmations:
            raise DuplicatePaymentProof(f"Payment proof already recorded: 0x{bytes(proof_hash).hex()}")
        confirmed = checked_add(slot.confirmed_amount, amount)
        if confirmed > slot.net_payment:
            raise PaymentOverflow("Payment overflow")

        self._confirmations[confirmation_key] = PaymentConfirmation(normalize_party(verifier), amount)
        self._commit(slot_key, replace(
            slot,
            confirmed_amount=confirmed,
            is_confirmed=confirmed == slot.net_payment,
        ))
        logger.debug(
            "verify_payment %s: %d verified, %d of %d confirmed",
            short_key(slot_key[0]), amount, confirmed, slot.net_payment,
        )

    def clear(self, party0: PartyLike, party1: PartyLike, slot_position: Position) -> None:
        """Zero the slot. Payment confirmations are kept."""
        slot_key, _, _ = self._slot(party0, party1, slot_position)
        self._commit(slot_key, self.EMPTY)
        logger.debug("clear %s", short_key(slot_key[0]))
