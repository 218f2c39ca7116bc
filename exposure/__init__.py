"""
exposure - Bilateral Exposure Ledger

Accounting core for OTC derivatives settlement: collateral, net present value
and scheduled payments between pairs of counterparties, plus the deal
identifiers and product registry that tie every record back to a deal.

Usage:
    from exposure import CollateralLedger, NetPVLedger, TimeSlotLedger, position

    collateral = CollateralLedger()
    collateral.deposit(alice, bob, 2 * ETH)
    collateral.get(bob, alice)            # (0, 2 * ETH), caller order

    slots = TimeSlotLedger()
    due = position(2021, 10, 6)
    slots.add_payment(alice, bob, due, 5000, 10000)
    slots.get(alice, bob, due).net_payment  # 5000, owed by bob
"""

# Core types
from .core import (
    Party,
    PartyLike,
    PairKey,
    Prefix,
    DealId,
    normalize_party,
    format_party,
    require_uint,
    checked_add,
    checked_sub,
    saturating_sub,
    ExposureError,
    InputValidationError,
    IdenticalAddresses,
    InvalidAddress,
    InvalidAmount,
    InvalidDate,
    InvalidPrefix,
    InvalidInputLengths,
    NonContractAddress,
    NumberOverflow,
    DuplicatePaymentProof,
    ArithmeticOverflow,
    PaymentOverflow,
    TimeSlotSettled,
    InvalidAccess,
    UINT256_MAX,
    NULL_PARTY,
    PARTY_BITS,
    PREFIX_BYTES,
    DEAL_COUNTER_BITS,
    DEAL_COUNTER_LIMIT,
    MIN_SLOT_DATE,
    MAX_SLOT_DATE,
)

# Encoding and settlement ids
from .encoding import (
    digest,
    encode_uint,
    encode_words,
    encode_string,
    to_bytes32,
    from_bytes32,
    native_settlement_id,
    crosschain_settlement_id,
)

# Pair keying
from .pair_keying import pack, canonical_order, orient

# Deal identifiers
from .deal_id import (
    generate,
    get_prefix,
    get_counter,
    format_deal_id,
    format_prefix,
    normalize_prefix,
    product_prefix,
    DealIdGenerator,
)

# Product registry
from .product_registry import ProductRegistry, ProductEntry

# Ledgers
from .bilateral import BilateralLedger
from .collateral import CollateralLedger, CollateralPosition
from .net_pv import NetPVLedger, NetPVBalance
from .time_slot import (
    TimeSlotLedger,
    TimeSlotPosition,
    TimeSlotView,
    PaymentConfirmation,
    position,
    position_of,
)

__all__ = [
    # Core
    'Party', 'PartyLike', 'PairKey', 'Prefix', 'DealId',
    'normalize_party', 'format_party',
    'require_uint', 'checked_add', 'checked_sub', 'saturating_sub',
    'ExposureError', 'InputValidationError', 'IdenticalAddresses', 'InvalidAddress',
    'InvalidAmount', 'InvalidDate', 'InvalidPrefix', 'InvalidInputLengths',
    'NonContractAddress', 'NumberOverflow', 'DuplicatePaymentProof',
    'ArithmeticOverflow', 'PaymentOverflow', 'TimeSlotSettled', 'InvalidAccess',
    'UINT256_MAX', 'NULL_PARTY', 'PARTY_BITS', 'PREFIX_BYTES',
    'DEAL_COUNTER_BITS', 'DEAL_COUNTER_LIMIT', 'MIN_SLOT_DATE', 'MAX_SLOT_DATE',
    # Encoding
    'digest', 'encode_uint', 'encode_words', 'encode_string',
    'to_bytes32', 'from_bytes32', 'native_settlement_id', 'crosschain_settlement_id',
    # Pair keying
    'pack', 'canonical_order', 'orient',
    # Deal ids
    'generate', 'get_prefix', 'get_counter', 'format_deal_id', 'format_prefix',
    'normalize_prefix', 'product_prefix', 'DealIdGenerator',
    # Registry
    'ProductRegistry', 'ProductEntry',
    # Ledgers
    'BilateralLedger',
    'CollateralLedger', 'CollateralPosition',
    'NetPVLedger', 'NetPVBalance',
    'TimeSlotLedger', 'TimeSlotPosition', 'TimeSlotView', 'PaymentConfirmation',
    'position', 'position_of',
]

__version__ = '1.0.0'
