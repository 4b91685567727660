"""Event log schema.

Defines the append-only ``event_store`` table holding every ledger event. Each
row is one event with a ledger-wide sequence (`global_seq`), a per-stream
version and a UTC timestamp. A stream is one contract on one ledger
(``"<ledger_id>:<contract>"``).

| Constraint                     | Purpose                              |
|--------------------------------|--------------------------------------|
| UNIQUE(stream_id, version)     | per-stream optimistic concurrency    |
| UNIQUE(event_id)               | ULID uniqueness                      |
| CHECK(length(event_id)=26)     | ULID length                          |
| CHECK(version >= 1)            | versioning starts at 1               |

UPDATE and DELETE are rejected by triggers created in the baseline migration.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Identity,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
    text,
)

from tally.adapters.db.metadata import metadata
from tally.adapters.db.sa_types import BIGINT_PK, PORTABLE_JSON, UTCDateTime

__all__ = ["event_store"]

event_store = Table(
    "event_store",
    metadata,
    Column(
        "global_seq",
        BIGINT_PK,
        Identity(start=1),
        nullable=False,
        primary_key=True,
        comment="Ledger-wide, monotonically increasing sequence.",
    ),
    Column(
        "stream_id",
        String(200),
        nullable=False,
        comment="Contract stream on one ledger (<ledger_id>:<contract>).",
    ),
    Column(
        "stream_type",
        String(100),
        nullable=False,
        comment="Contract name (TokenLedger, DomainRegistry, SimpleWallet).",
    ),
    Column(
        "version",
        Integer,
        nullable=False,
        comment="Per-stream version (starts at 1).",
    ),
    Column(
        "event_id",
        String(26),
        nullable=False,
        unique=True,
        comment="ULID (26 chars). Uniquely identifies this event.",
    ),
    Column(
        "event_type",
        String(120),
        nullable=False,
        comment="Event class name, e.g. LogDeposit.",
    ),
    Column(
        "recorded_at",
        UTCDateTime(),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="Server-assigned UTC timestamp.",
    ),
    Column(
        "payload",
        PORTABLE_JSON,
        nullable=False,
        comment="Event fields (hex addresses, decimal amounts).",
    ),
    Column(
        "metadata",
        PORTABLE_JSON,
        nullable=True,
        comment="Originating transaction (sender, kind, nonce).",
    ),
    UniqueConstraint("stream_id", "version"),
    CheckConstraint("version >= 1", name="positive_version"),
    CheckConstraint("length(event_id) = 26", name="event_id_26_char"),
    Index(None, "stream_type", "event_type"),
    Index(None, "stream_id", "global_seq"),
    Index(None, "event_type"),
    comment="Append-only ledger event log. One row per event.",
)
