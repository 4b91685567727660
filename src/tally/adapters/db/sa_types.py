"""Portable column types for the event log.

- `BIGINT_PK`: BIGINT on PostgreSQL, INTEGER on SQLite (so rowid autoincrement works).
- `PORTABLE_JSON`: JSONB on PostgreSQL, JSON elsewhere; event payloads carry
  uint256 amounts as decimal strings, so no precision is lost in either.
- `UTCDateTime`: tz-aware UTC timestamps on every backend.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import DateTime, TypeDecorator

from tally.adapters.db.dialects import DialectName

if TYPE_CHECKING:
    from sqlalchemy.engine.interfaces import Dialect

__all__ = ["BIGINT_PK", "UTCDateTime", "PORTABLE_JSON"]


BIGINT_PK = BigInteger().with_variant(Integer(), DialectName.SQLITE.value)

PORTABLE_JSON = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), DialectName.POSTGRES.value
)


class UTCDateTime(TypeDecorator[datetime]):  # pylint: disable=too-many-ancestors
    """Timezone-aware UTC datetime; naive values are taken to be UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        # SQLite has no tz support: store naive UTC
        if dialect.name == DialectName.SQLITE.value:
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if not isinstance(value, datetime):
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_literal_param(self, value: datetime | None, dialect: Dialect) -> Any:
        return self.process_bind_param(value, dialect)

    @property
    def python_type(self) -> type[datetime]:
        return datetime
