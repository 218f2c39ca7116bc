#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: One Bilateral Deal, Start to Finish

A step-by-step walkthrough of the exposure ledgers. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-2: Identity    - Pair keys, deal ids and the product registry
  3-4: Margin      - Collateral deposits and permissive withdrawals
  5:   Valuation   - Unsettled and settled PV
  6-7: Payments    - Time slot netting and proof-backed confirmation
  8:   Default     - Liquidation and rebalancing

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
    python demo.py --trace   # Also print the ledgers' DEBUG log lines
"""

from dataclasses import dataclass
from datetime import date
import logging
import sys

from exposure import (
    CollateralLedger, NetPVLedger, TimeSlotLedger, ProductRegistry,
    DealIdGenerator, product_prefix, get_prefix, get_counter,
    format_deal_id, format_prefix, format_party, normalize_party,
    pack, position_of, native_settlement_id, to_bytes32,
    ExposureError,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

ETH = 10 ** 18


@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    alice: str = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
    bob: str = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
    carol: str = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"
    owner: str = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
    loan_contract: str = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
    market_contract: str = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"

    alice_margin: int = 2 * ETH
    bob_margin: int = 5 * ETH

    payment_date: date = date(2021, 10, 6)
    alice_owes: int = 5000
    bob_owes: int = 10000


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def eth(amount: int) -> str:
    return f"{amount / ETH:,.2f} ETH"


# ============================================================================
# PHASE 1: IDENTITY
# ============================================================================

def step_01_pair_keys():
    """One record per unordered pair."""
    step_header(1, "Pair Keys",
        "Every ledger stores exactly one record per pair of counterparties.")

    key_ab, flipped_ab = pack(CONFIG.alice, CONFIG.bob)
    key_ba, flipped_ba = pack(CONFIG.bob, CONFIG.alice)
    print(f">>> pack(alice, bob) -> key {key_ab.hex()[:16]}..., flipped={flipped_ab}")
    print(f">>> pack(bob, alice) -> key {key_ba.hex()[:16]}..., flipped={flipped_ba}")

    section_header("Key Insight")
    print("""
    The key is the same in both orders. The flipped flag tells the ledger
    which side of the stored record belongs to the first argument, so reads
    always come back in the caller's order.
    """)
    wait_for_enter()


def step_02_registry():
    """Issue a deal id and route it to its product contract."""
    step_header(2, "Deal Ids and the Product Registry",
        "A deal id carries its product prefix, the registry resolves the contract.")

    deployed = {normalize_party(CONFIG.loan_contract), normalize_party(CONFIG.market_contract)}
    registry = ProductRegistry(CONFIG.owner, is_contract=deployed.__contains__, verbose=True)

    loan = product_prefix("0xLoan")
    print(f">>> product_prefix('0xLoan') = {format_prefix(loan)}")
    registry.register_product(CONFIG.owner, loan, CONFIG.loan_contract, CONFIG.market_contract)

    ids = DealIdGenerator(loan)
    deal_id = ids.next_id()
    print(f"\nDeal id:   {format_deal_id(deal_id)}")
    print(f"Prefix:    {format_prefix(get_prefix(deal_id))}")
    print(f"Counter:   {get_counter(deal_id)}")
    print(f"Handled by {format_party(registry.get_product_contract_by_deal_id(deal_id))}")

    section_header("Access Control")
    try:
        registry.register_product(CONFIG.alice, loan, CONFIG.market_contract, CONFIG.market_contract)
    except ExposureError as e:
        print(f"alice cannot register products: {type(e).__name__}({e})")
    wait_for_enter()
    return deal_id


# ============================================================================
# PHASE 2: MARGIN
# ============================================================================

def step_03_deposit():
    """Both parties post margin against each other."""
    step_header(3, "Collateral Deposits",
        "Each side of a position holds the collateral one party locked.")

    collateral = CollateralLedger()
    collateral.deposit(CONFIG.alice, CONFIG.bob, CONFIG.alice_margin)
    collateral.deposit(CONFIG.bob, CONFIG.alice, CONFIG.bob_margin)

    alice_side, bob_side = collateral.get(CONFIG.alice, CONFIG.bob)
    print(f"get(alice, bob): alice {eth(alice_side)}, bob {eth(bob_side)}")
    bob_side, alice_side = collateral.get(CONFIG.bob, CONFIG.alice)
    print(f"get(bob, alice): bob {eth(bob_side)}, alice {eth(alice_side)}")
    wait_for_enter()
    return collateral


def step_04_withdraw(collateral: CollateralLedger):
    """Withdrawals never fail for lack of balance."""
    step_header(4, "Permissive Withdrawal",
        "A withdrawal above the locked balance releases what is there.")

    snapshot = collateral.clone()
    moved = snapshot.withdraw(CONFIG.alice, CONFIG.bob, 5 * ETH)
    print(f">>> withdraw(alice, bob, 5 ETH) moved {eth(moved)}")
    print(f"Position after (on a clone): {tuple(eth(x) for x in snapshot.get(CONFIG.alice, CONFIG.bob))}")
    print(f"Original untouched:          {tuple(eth(x) for x in collateral.get(CONFIG.alice, CONFIG.bob))}")
    wait_for_enter()


# ============================================================================
# PHASE 3: VALUATION
# ============================================================================

def step_05_net_pv():
    """Book PV unsettled, then settle it."""
    step_header(5, "Net Present Value",
        "PV moves from the unsettled to the settled bucket, never below zero.")

    net_pv = NetPVLedger()
    net_pv.use(CONFIG.alice, CONFIG.bob, 3 * ETH, ETH)
    print(f"After use:    {net_pv.get(CONFIG.alice, CONFIG.bob)}")
    net_pv.settle(CONFIG.alice, CONFIG.bob, 3 * ETH, ETH)
    print(f"After settle: {net_pv.get(CONFIG.alice, CONFIG.bob)}")

    section_header("Strict Subtraction")
    try:
        net_pv.settle(CONFIG.alice, CONFIG.bob, 1, 0)
    except ExposureError as e:
        print(f"Settling more than is unsettled fails: {type(e).__name__}")
    wait_for_enter()
    return net_pv


# ============================================================================
# PHASE 4: PAYMENTS
# ============================================================================

def step_06_time_slot():
    """Net the payments due on one date."""
    step_header(6, "Time Slots",
        "Gross payments owed on the same date net down to one amount.")

    slots = TimeSlotLedger()
    due = position_of(CONFIG.payment_date)
    slots.add_payment(CONFIG.alice, CONFIG.bob, due, CONFIG.alice_owes, CONFIG.bob_owes)
    view = slots.get(CONFIG.alice, CONFIG.bob, due)
    print(f"Totals (alice, bob): {view.total_payment0}, {view.total_payment1}")
    print(f"Net payment:         {view.net_payment} (owed by {'bob' if view.flipped else 'alice'})")
    print(f"Balanced:            {view.is_settled}")
    wait_for_enter()
    return slots, due


def step_07_confirm(slots: TimeSlotLedger, due: bytes):
    """bob pays, the payment is verified by proof hash."""
    step_header(7, "Payment Confirmation",
        "Verified payments that reach the net amount close the slot.")

    net = slots.get(CONFIG.bob, CONFIG.alice, due).net_payment
    proof = native_settlement_id(CONFIG.bob, CONFIG.alice, to_bytes32("USD"), net, 1633478400)
    print(f"Proof hash: 0x{proof.hex()}")
    slots.verify_payment(CONFIG.bob, CONFIG.alice, due, net, proof)
    print(f"Confirmed:  {slots.is_confirmed(CONFIG.alice, CONFIG.bob, due)}")

    try:
        slots.add_payment(CONFIG.alice, CONFIG.bob, due, 1, 0)
    except ExposureError as e:
        print(f"Further changes rejected: {e}")
    wait_for_enter()


# ============================================================================
# PHASE 5: DEFAULT
# ============================================================================

def step_08_default(collateral: CollateralLedger):
    """Liquidate a defaulting party and move collateral to a new counterparty."""
    step_header(8, "Liquidation and Rebalancing",
        "Collateral moves between parties and positions without being created.")

    moved = collateral.liquidate(CONFIG.bob, CONFIG.alice, 3 * ETH)
    print(f">>> liquidate(bob, alice, 3 ETH) moved {eth(moved)}")
    print(f"Position: {tuple(eth(x) for x in collateral.get(CONFIG.alice, CONFIG.bob))}")

    moved = collateral.rebalance(CONFIG.alice, CONFIG.bob, CONFIG.carol, 4 * ETH)
    print(f">>> rebalance(alice, bob -> carol, 4 ETH) moved {eth(moved)}")
    print(f"With bob:   {tuple(eth(x) for x in collateral.get(CONFIG.alice, CONFIG.bob))}")
    print(f"With carol: {tuple(eth(x) for x in collateral.get(CONFIG.alice, CONFIG.carol))}")
    wait_for_enter()


def main():
    if "--trace" in sys.argv:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    print("""
    ======================================================================
       BILATERAL EXPOSURE LEDGER TUTORIAL
    ======================================================================
    """)

    step_01_pair_keys()
    step_02_registry()
    collateral = step_03_deposit()
    step_04_withdraw(collateral)
    step_05_net_pv()
    slots, due = step_06_time_slot()
    step_07_confirm(slots, due)
    step_08_default(collateral)

    print(f"\n{'='*70}")
    print("TUTORIAL COMPLETE")
    print(f"{'='*70}\n")


if __name__ == "__main__":
    main()
