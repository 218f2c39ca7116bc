"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the exposure ledgers.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. canonicalization.py - One storage key per unordered pair, caller-order views
2. atomicity.py - A failing call leaves every ledger unchanged
3. conservation.py - Collateral never created, verified payments capped by net
4. idempotency.py - Zero amounts, repeated clears and repeated proofs
5. determinism.py - Reproducible keys, ids and independent clones

These tests use hypothesis for property-based testing.
"""
