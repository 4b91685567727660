"""Create the append-only event_store table

Revision ID: 3c1f0a9d7e52
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from tally.adapters.db.dialects import DialectName
from tally.adapters.db.sa_types import BIGINT_PK, PORTABLE_JSON, UTCDateTime

# pylint: disable=no-member

revision: str = "3c1f0a9d7e52"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

POSTGRES_APPEND_ONLY = (
    """
    CREATE OR REPLACE FUNCTION event_store_forbid_mod() RETURNS trigger
    LANGUAGE plpgsql AS $$
    BEGIN
      RAISE EXCEPTION 'event_store is append-only; % not allowed', TG_OP
      USING ERRCODE = '0A000';
    END;
    $$;
    """,
    """
    CREATE TRIGGER tr_event_store_append_only
    BEFORE UPDATE OR DELETE ON event_store
    FOR EACH ROW
    EXECUTE FUNCTION event_store_forbid_mod();
    """,
)

SQLITE_APPEND_ONLY = tuple(
    f"""
    CREATE TRIGGER tr_event_store_no_{operation.lower()}
    BEFORE {operation} ON event_store
    BEGIN
      SELECT RAISE(ABORT, 'event_store is append-only; {operation} not allowed');
    END;
    """
    for operation in ("UPDATE", "DELETE")
)


def _dialect() -> str:
    # the migration context knows the dialect in offline (--sql) mode too
    return op.get_context().dialect.name


def upgrade() -> None:
    """Upgrade schema."""
    is_postgres = _dialect() == DialectName.POSTGRES.value

    op.create_table(
        "event_store",
        sa.Column(
            "global_seq",
            BIGINT_PK,
            sa.Identity(always=False, start=1),
            nullable=False,
            comment="Ledger-wide, monotonically increasing sequence.",
        ),
        sa.Column(
            "stream_id",
            sa.String(length=200),
            nullable=False,
            comment="Contract stream on one ledger (<ledger_id>:<contract>).",
        ),
        sa.Column(
            "stream_type",
            sa.String(length=100),
            nullable=False,
            comment="Contract name (TokenLedger, DomainRegistry, SimpleWallet).",
        ),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            comment="Per-stream version (starts at 1).",
        ),
        sa.Column(
            "event_id",
            sa.String(length=26),
            nullable=False,
            comment="ULID (26 chars). Uniquely identifies this event.",
        ),
        sa.Column(
            "event_type",
            sa.String(length=120),
            nullable=False,
            comment="Event class name, e.g. LogDeposit.",
        ),
        sa.Column(
            "recorded_at",
            UTCDateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Server-assigned UTC timestamp.",
        ),
        sa.Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Event fields (hex addresses, decimal amounts).",
        ),
        sa.Column(
            "metadata",
            PORTABLE_JSON,
            nullable=True,
            comment="Originating transaction (sender, kind, nonce).",
        ),
        sa.CheckConstraint(
            "length(event_id) = 26", name=op.f("ck_event_store_event_id_26_char")
        ),
        sa.CheckConstraint(
            "version >= 1", name=op.f("ck_event_store_positive_version")
        ),
        sa.PrimaryKeyConstraint("global_seq", name=op.f("pk_event_store")),
        sa.UniqueConstraint("event_id", name=op.f("uq_event_store_event_id")),
        sa.UniqueConstraint(
            "stream_id", "version", name=op.f("uq_event_store_stream_id_version")
        ),
        comment="Append-only ledger event log. One row per event.",
    )
    op.create_index(
        op.f("ix_event_store_event_store_event_type"),
        "event_store",
        ["event_type"],
        unique=False,
    )
    op.create_index(
        op.f("ix_event_store_event_store_stream_id_event_store_global_seq"),
        "event_store",
        ["stream_id", "global_seq"],
        unique=False,
    )
    op.create_index(
        op.f("ix_event_store_event_store_stream_type_event_store_event_type"),
        "event_store",
        ["stream_type", "event_type"],
        unique=False,
    )

    for statement in POSTGRES_APPEND_ONLY if is_postgres else SQLITE_APPEND_ONLY:
        op.execute(statement)


def downgrade() -> None:
    """Downgrade schema."""
    if _dialect() == DialectName.POSTGRES.value:
        op.execute("DROP TRIGGER IF EXISTS tr_event_store_append_only ON event_store;")
        op.execute("DROP FUNCTION IF EXISTS event_store_forbid_mod();")
    else:
        op.execute("DROP TRIGGER IF EXISTS tr_event_store_no_delete;")
        op.execute("DROP TRIGGER IF EXISTS tr_event_store_no_update;")

    op.drop_index(
        op.f("ix_event_store_event_store_stream_type_event_store_event_type"),
        table_name="event_store",
    )
    op.drop_index(
        op.f("ix_event_store_event_store_stream_id_event_store_global_seq"),
        table_name="event_store",
    )
    op.drop_index(
        op.f("ix_event_store_event_store_event_type"), table_name="event_store"
    )
    op.drop_table("event_store")
