"""Domain layer for TALLY.

Contains business rules: value objects, the ledger state, the contract
rule-sets operating over it, and the domain events they emit. This package is
deliberately technology-agnostic.

Dependency rule: do not import from `tally.adapters` or `tally.entrypoints`.
"""
