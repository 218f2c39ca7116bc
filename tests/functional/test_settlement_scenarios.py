"""
test_settlement_scenarios.py - End-to-end settlement walkthroughs

Tests:
- A loan deal from id issuance through registry routing, margining,
  PV booking and time slot settlement with native proof hashes
- Cross-chain confirmation with several partial payments
- A defaulting counterparty: collateral liquidation after a failed payment
- Moving collateral to a new counterparty and re-booking PV
"""

import pytest

from exposure import (
    CollateralLedger, NetPVLedger, TimeSlotLedger, ProductRegistry, DealIdGenerator,
    product_prefix, get_prefix, normalize_party, position_of,
    native_settlement_id, crosschain_settlement_id, to_bytes32,
    TimeSlotSettled, ArithmeticOverflow,
)


ETH = 10 ** 18
LOAN_CONTRACT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
MARKET_CONTRACT = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"


class TestLoanLifecycle:
    """A single loan deal settled on its payment date."""

    def test_full_lifecycle(self, registry, owner, alice, bob, settlement_date):
        loan = product_prefix("0xLoan")
        registry.register_product(owner, loan, LOAN_CONTRACT, MARKET_CONTRACT)

        # Issue a deal and route it back to its handling contract
        ids = DealIdGenerator(loan)
        deal_id = ids.next_id()
        assert get_prefix(deal_id) == loan
        assert registry.get_product_contract_by_deal_id(deal_id) == normalize_party(LOAN_CONTRACT)

        # Both sides post margin
        collateral = CollateralLedger()
        collateral.deposit(alice, bob, 2 * ETH)
        collateral.deposit(bob, alice, 5 * ETH)

        # Book PV for the new deal, then settle it once the trade is matched
        net_pv = NetPVLedger()
        net_pv.use(alice, bob, 3 * ETH, ETH)
        net_pv.settle(alice, bob, 3 * ETH, ETH)
        assert net_pv.get(bob, alice) == (0, 0, ETH, 3 * ETH)

        # Coupon and principal owed on the payment date
        slots = TimeSlotLedger()
        due = position_of(settlement_date)
        slots.add_payment(alice, bob, due, 5000, 10000)
        view = slots.get(alice, bob, due)
        assert view.net_payment == 5000
        assert view.flipped is True

        # bob pays the net amount on-platform
        proof = native_settlement_id(bob, alice, to_bytes32("USD"), 5000, 1633478400)
        slots.verify_payment(bob, alice, due, 5000, proof)
        assert slots.is_confirmed(alice, bob, due)
        with pytest.raises(TimeSlotSettled):
            slots.add_payment(alice, bob, due, 1, 0)

        # Deal matures: release the settled PV and both sides withdraw margin
        net_pv.release(alice, bob, 3 * ETH, ETH, is_settled=True)
        assert net_pv.get(alice, bob) == (0, 0, 0, 0)
        assert collateral.withdraw(alice, bob, 10 * ETH) == 2 * ETH
        assert collateral.withdraw(bob, alice, 10 * ETH) == 5 * ETH
        assert len(collateral) == 0
        assert len(net_pv) == 0


class TestCrossChainSettlement:
    """A net payment confirmed by several transfers on another chain."""

    def test_partial_payments(self, time_slots, alice, bob, slot_position):
        time_slots.add_payment(alice, bob, slot_position, 12000, 2000)
        transfers = [
            ("0x" + "a1" * 32, 4000),
            ("0x" + "b2" * 32, 4000),
            ("0x" + "c3" * 32, 2000),
        ]
        for tx_hash, amount in transfers[:2]:
            time_slots.verify_payment(alice, bob, slot_position, amount, crosschain_settlement_id(tx_hash))
            assert not time_slots.is_confirmed(alice, bob, slot_position)

        last_hash, last_amount = transfers[2]
        time_slots.verify_payment(alice, bob, slot_position, last_amount, crosschain_settlement_id(last_hash))
        assert time_slots.is_confirmed(bob, alice, slot_position)

        for tx_hash, amount in transfers:
            record = time_slots.get_payment_confirmation(bob, alice, slot_position, crosschain_settlement_id(tx_hash))
            assert record.amount == amount
            assert record.verification_party == normalize_party(alice)


class TestDefault:
    """A missed payment is covered from the defaulting party's collateral."""

    def test_liquidation_after_missed_payment(self, funded_collateral, time_slots, alice, bob, slot_position):
        time_slots.add_payment(alice, bob, slot_position, 0, 3 * ETH)
        owed = time_slots.get(alice, bob, slot_position).net_payment

        # bob fails to pay; his collateral is transferred to alice
        moved = funded_collateral.liquidate(bob, alice, owed)
        assert moved == 3 * ETH
        assert funded_collateral.get(alice, bob) == (5 * ETH, 2 * ETH)

        # The payment is then recorded as made and the slot closes
        slots_proof = crosschain_settlement_id("liquidation-" + str(moved))
        time_slots.verify_payment(bob, alice, slot_position, moved, slots_proof)
        assert time_slots.is_confirmed(alice, bob, slot_position)

    def test_shortfall_moves_what_is_available(self, funded_collateral, alice, bob):
        assert funded_collateral.liquidate(alice, bob, 100 * ETH) == 2 * ETH
        assert funded_collateral.get(alice, bob) == (0, 7 * ETH)


class TestNovation:
    """A deal moves from one counterparty to another."""

    def test_move_collateral_and_pv(self, funded_collateral, net_pv, alice, bob, carol):
        net_pv.use(alice, bob, 0, 4 * ETH, is_settled=True)

        # Unwind with bob
        net_pv.release(alice, bob, 0, 4 * ETH, is_settled=True)
        moved = funded_collateral.rebalance(alice, bob, carol, 2 * ETH)
        assert moved == 2 * ETH

        # Re-book with carol
        net_pv.use(alice, carol, 0, 4 * ETH, is_settled=True)
        assert net_pv.get(carol, alice) == (0, 0, 4 * ETH, 0)
        assert funded_collateral.get(alice, carol) == (2 * ETH, 0)
        assert funded_collateral.get(alice, bob) == (0, 5 * ETH)

        with pytest.raises(ArithmeticOverflow):
            net_pv.release(alice, bob, 0, ETH, is_settled=True)
