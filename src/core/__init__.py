"""
Core domain models, integer math and JSON contracts.

Building blocks of the stable token that do not depend on the ledger
or the rebalance engine: value objects, error taxonomy, events,
uint128 arithmetic and schema validation.
"""
