"""Service layer for TALLY.

Implements the ledger's use-cases: the transaction processor (verify, check,
apply), read-side queries over committed snapshots, commands, handlers and the
message bus that routes commands to them.

Dependency rule: may import `tally.domain` and `tally.interfaces`, but not
`tally.adapters` or `tally.entrypoints`.
"""
