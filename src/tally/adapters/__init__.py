"""Adapters (infrastructure) for TALLY.

Provide concrete implementations of the interfaces: secp256k1 key management
and signing, the event store (in memory and SQLAlchemy), units of work, ID
generators and redaction, plus persistence wiring (engines, metadata,
migrations).

Dependency rule: may import `tally.domain` and `tally.interfaces`; the domain
must not import this package.
"""
