"""
Idempotency Conformance Tests

INVARIANT: Repeating a neutral call changes nothing.

    deposit(p, q, 0), use(p, q, 0, 0)      ⟹ no record created
    clear(...) twice                       ⟹ same state as once
    verify_payment with a known proof hash ⟹ rejected, state unchanged
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from exposure import (
    CollateralLedger, NetPVLedger, TimeSlotLedger, position, digest,
    DuplicatePaymentProof,
)


ALICE = 0x70997970c51812dc3a010c7d01b50e0d17dc79c8
BOB = 0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc
SLOT = position(2021, 10, 6)

amounts = st.integers(min_value=0, max_value=10 ** 24)


class TestZeroAmounts:
    """Zero amounts never create state."""

    def test_zero_deposit(self):
        ledger = CollateralLedger()
        ledger.deposit(ALICE, BOB, 0)
        assert len(ledger) == 0

    def test_zero_use(self):
        ledger = NetPVLedger()
        ledger.use(ALICE, BOB, 0, 0, is_settled=True)
        assert len(ledger) == 0

    def test_release_on_empty_position(self):
        ledger = CollateralLedger()
        assert ledger.withdraw(ALICE, BOB, 10) == 0
        assert ledger.liquidate(ALICE, BOB, 10) == 0
        assert len(ledger) == 0


class TestClearIdempotency:
    """Clearing twice is the same as clearing once."""

    @given(amounts, amounts)
    @settings(max_examples=50)
    def test_collateral_clear_twice(self, x, y):
        """
        PROPERTY: clear(); clear() leaves an empty position and no stored record.
        """
        ledger = CollateralLedger()
        ledger.deposit(ALICE, BOB, x)
        ledger.deposit(BOB, ALICE, y)
        ledger.clear(ALICE, BOB)
        ledger.clear(BOB, ALICE)
        assert ledger.get(ALICE, BOB) == (0, 0)
        assert len(ledger) == 0

    @given(amounts, amounts)
    @settings(max_examples=50)
    def test_time_slot_clear_twice(self, x, y):
        """
        PROPERTY: clearing a slot twice reads as a fresh slot.
        """
        ledger = TimeSlotLedger()
        ledger.add_payment(ALICE, BOB, SLOT, x, y)
        ledger.clear(ALICE, BOB, SLOT)
        ledger.clear(ALICE, BOB, SLOT)
        assert ledger.get(ALICE, BOB, SLOT) == TimeSlotLedger().get(ALICE, BOB, SLOT)


class TestProofIdempotency:
    """A proof hash counts once per slot."""

    def test_replayed_proof_rejected(self):
        ledger = TimeSlotLedger()
        ledger.add_payment(ALICE, BOB, SLOT, 100, 0)
        proof = digest(b"tx-1")
        ledger.verify_payment(ALICE, BOB, SLOT, 40, proof)
        before = ledger.get(ALICE, BOB, SLOT)
        with pytest.raises(DuplicatePaymentProof):
            ledger.verify_payment(ALICE, BOB, SLOT, 40, proof)
        assert ledger.get(ALICE, BOB, SLOT) == before

    def test_same_proof_on_other_date(self):
        ledger = TimeSlotLedger()
        other = position(2021, 10, 7)
        ledger.add_payment(ALICE, BOB, SLOT, 100, 0)
        ledger.add_payment(ALICE, BOB, other, 100, 0)
        proof = digest(b"tx-1")
        ledger.verify_payment(ALICE, BOB, SLOT, 100, proof)
        ledger.verify_payment(ALICE, BOB, other, 100, proof)
        assert ledger.is_confirmed(ALICE, BOB, SLOT)
        assert ledger.is_confirmed(ALICE, BOB, other)
