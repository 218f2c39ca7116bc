"""
product_registry.py - Product prefix to contract resolution

The registry maps each 4-byte product prefix to the pair of contracts that
handle deals of that product:

    prefix -> (product contract, controller contract)

External callers take a deal id, slice its prefix (see deal_id.get_prefix)
and resolve the handling contracts here instead of hard-coding addresses.

Writes are restricted to the owner given at construction. Both targets must
satisfy the host's is_contract predicate. Lookups of unknown prefixes return
NULL_PARTY rather than failing.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple
import logging

from .core import (
    Party, PartyLike, Prefix, NULL_PARTY,
    InvalidAccess, InvalidAddress, InvalidInputLengths, NonContractAddress,
    normalize_party, format_party,
)
from .deal_id import (
    PrefixLike, DealIdLike,
    normalize_prefix, get_prefix, format_prefix,
)


logger = logging.getLogger(__name__)

# Host check for "this address holds deployed code".
ContractCheck = Callable[[Party], bool]


@dataclass(frozen=True, slots=True)
class ProductEntry:
    """
    Contracts registered for one product prefix.

    Attributes:
        product: Settlement-logic contract for deals of this product
        controller: Market contract that controls this product
    """
    product: Party
    controller: Party


class ProductRegistry:
    """
    Owner-gated registry of product prefixes.

    Example:
        deployed = {loan, market}
        registry = ProductRegistry(owner, is_contract=deployed.__contains__)
        registry.register_product(owner, product_prefix("0xLoan"), loan, market)
        registry.get_product_contract_by_deal_id(deal_id)   # -> loan
    """

    def __init__(
        self,
        owner: PartyLike,
        is_contract: ContractCheck,
        verbose: bool = False,
    ):
        """
        Create an empty registry.

        Args:
            owner: The only party allowed to register products
            is_contract: Predicate telling whether an address is a deployed contract
            verbose: Print a confirmation line per registered product
        """
        self._owner = normalize_party(owner)
        self._is_contract = is_contract
        self.verbose = verbose
        self._entries: Dict[Prefix, ProductEntry] = {}

    # ========================================================================
    # OWNERSHIP
    # ========================================================================

    @property
    def owner(self) -> Party:
        return self._owner

    def _require_owner(self, caller: PartyLike) -> None:
        if normalize_party(caller) != self._owner:
            raise InvalidAccess("INVALID_ACCESS")

    def transfer_ownership(self, caller: PartyLike, new_owner: PartyLike) -> None:
        """
        Hand the registry to a new owner.

        Raises:
            InvalidAccess: If caller is not the current owner
            InvalidAddress: If new_owner is malformed or the null party
        """
        self._require_owner(caller)
        new = normalize_party(new_owner)
        if new == NULL_PARTY:
            raise InvalidAddress("Invalid address")
        logger.info("Registry ownership %s -> %s", format_party(self._owner), format_party(new))
        self._owner = new

    # ========================================================================
    # REGISTRATION (owner only)
    # ========================================================================

    def _validated_entry(
        self,
        prefix: PrefixLike,
        product: PartyLike,
        controller: PartyLike,
    ) -> Tuple[Prefix, ProductEntry]:
        raw = normalize_prefix(prefix)
        product_addr = normalize_party(product)
        controller_addr = normalize_party(controller)
        for addr in (product_addr, controller_addr):
            if addr == NULL_PARTY or not self._is_contract(addr):
                raise NonContractAddress("Can't add non-contract address")
        return raw, ProductEntry(product_addr, controller_addr)

    def _store(self, prefix: Prefix, entry: ProductEntry) -> None:
        previous = self._entries.get(prefix)
        self._entries[prefix] = entry
        if previous is not None and previous != entry:
            logger.debug(
                "Replaced product %s: %s -> %s",
                format_prefix(prefix), format_party(previous.product), format_party(entry.product),
            )
        else:
            logger.debug("Registered product %s -> %s", format_prefix(prefix), format_party(entry.product))
        if self.verbose:
            print(f"Registered: {format_prefix(prefix)} product={format_party(entry.product)} "
                  f"controller={format_party(entry.controller)}")

    def register_product(
        self,
        caller: PartyLike,
        prefix: PrefixLike,
        product: PartyLike,
        controller: PartyLike,
    ) -> None:
        """
        Register or overwrite the contracts for one product prefix.

        Args:
            caller: Party performing the call (must be the owner)
            prefix: 4-byte product prefix
            product: Settlement-logic contract
            controller: Controlling market contract

        Raises:
            InvalidAccess: If caller is not the owner
            NonContractAddress: If either address is not a deployed contract
            InvalidPrefix: If prefix is not 4 bytes
        """
        self._require_owner(caller)
        raw, entry = self._validated_entry(prefix, product, controller)
        self._store(raw, entry)

    def register_products(
        self,
        caller: PartyLike,
        prefixes: Sequence[PrefixLike],
        products: Sequence[PartyLike],
        controllers: Sequence[PartyLike],
    ) -> None:
        """
        Register several products at once.

        Every entry is validated before any is written, so a bad entry
        leaves the registry unchanged.

        Raises:
            InvalidAccess: If caller is not the owner
            InvalidInputLengths: If the three sequences differ in length
            NonContractAddress: If any address is not a deployed contract
        """
        self._require_owner(caller)
        if not (len(prefixes) == len(products) == len(controllers)):
            raise InvalidInputLengths("Invalid input lengths")
        validated = [
            self._validated_entry(prefix, product, controller)
            for prefix, product, controller in zip(prefixes, products, controllers)
        ]
        for raw, entry in validated:
            self._store(raw, entry)

    # ========================================================================
    # LOOKUPS (read-only)
    # ========================================================================

    def get_product_contract(self, prefix: PrefixLike) -> Party:
        """Product contract for a prefix, or NULL_PARTY if unregistered."""
        entry = self._entries.get(normalize_prefix(prefix))
        return entry.product if entry else NULL_PARTY

    def get_controller_contract(self, prefix: PrefixLike) -> Party:
        """Controller contract for a prefix, or NULL_PARTY if unregistered."""
        entry = self._entries.get(normalize_prefix(prefix))
        return entry.controller if entry else NULL_PARTY

    def get_product_contract_by_deal_id(self, deal_id: DealIdLike) -> Party:
        """Resolve the product contract of a full deal id via its prefix."""
        return self.get_product_contract(get_prefix(deal_id))

    def get_controller_contract_by_deal_id(self, deal_id: DealIdLike) -> Party:
        """Resolve the controller contract of a full deal id via its prefix."""
        return self.get_controller_contract(get_prefix(deal_id))

    def is_registered_product_contract(self, product: PartyLike) -> bool:
        """True while at least one prefix maps to this product contract."""
        addr = normalize_party(product)
        return any(entry.product == addr for entry in self._entries.values())

    def list_prefixes(self) -> List[Prefix]:
        """All registered prefixes, sorted."""
        return sorted(self._entries)
