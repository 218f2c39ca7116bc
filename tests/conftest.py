"""
conftest.py - Shared pytest fixtures for exposure ledger tests

Provides common fixtures used across unit and functional tests:
- Named parties (alice, bob, carol, owner) and contract addresses
- Fresh ledgers (collateral, net PV, time slots)
- A product registry with two deployed contracts
"""

import pytest
from datetime import date

from exposure import (
    CollateralLedger,
    NetPVLedger,
    TimeSlotLedger,
    ProductRegistry,
    normalize_party,
    position,
)


# =============================================================================
# CONSTANTS
# =============================================================================

# One unit of an 18-decimal asset.
ETH = 10 ** 18

# Numeric order: BOB < ALICE < CAROL < OWNER, so pack(ALICE, BOB) is flipped.
ALICE = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
BOB = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
CAROL = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"
OWNER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

LOAN_CONTRACT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
MARKET_CONTRACT = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"


# =============================================================================
# PARTY FIXTURES
# =============================================================================

@pytest.fixture
def alice():
    return ALICE


@pytest.fixture
def bob():
    return BOB


@pytest.fixture
def carol():
    return CAROL


@pytest.fixture
def owner():
    return OWNER


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def collateral():
    """Empty collateral position ledger."""
    return CollateralLedger("test")


@pytest.fixture
def net_pv():
    """Empty net PV ledger."""
    return NetPVLedger("test")


@pytest.fixture
def time_slots():
    """Empty time slot ledger."""
    return TimeSlotLedger("test")


@pytest.fixture
def slot_position():
    """Position of 6 October 2021."""
    return position(2021, 10, 6)


@pytest.fixture
def deployed_contracts():
    """Addresses the host reports as deployed contracts."""
    return {normalize_party(LOAN_CONTRACT), normalize_party(MARKET_CONTRACT)}


@pytest.fixture
def registry(deployed_contracts):
    """Product registry owned by OWNER."""
    return ProductRegistry(OWNER, is_contract=deployed_contracts.__contains__)


@pytest.fixture
def funded_collateral():
    """Collateral ledger after alice locks 2 ETH and bob 5 ETH against each other."""
    ledger = CollateralLedger("funded")
    ledger.deposit(ALICE, BOB, 2 * ETH)
    ledger.deposit(BOB, ALICE, 5 * ETH)
    return ledger


@pytest.fixture
def settlement_date():
    return date(2021, 10, 6)
