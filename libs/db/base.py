"""Declarative base and portable column types shared by all services."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from libs.common.datetime_utils import ensure_utc


class Base(DeclarativeBase):
    """Declarative base for all SQLAlchemy models."""


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always round-trips as aware UTC.

    PostgreSQL stores ``timestamptz`` natively; SQLite drops the offset, so
    values are normalised to UTC on the way in and re-tagged on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any):
        if value is None:
            return None
        value = ensure_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect: Any):
        if value is None:
            return None
        return ensure_utc(value)
