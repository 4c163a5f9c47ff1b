"""
Kafiza Backend — Shared Model Columns
=======================================

What:  The identity, timestamp and soft-delete columns every resource carries.
How:   `ResourceMixin` is mixed into each mapped resource class.

Record lifecycle:
    1. Created: created_at = updated_at = now, is_active = True, total_orders = 0
    2. Updated: updated_at refreshed; is_active untouched
    3. Deleted: is_active = False, updated_at refreshed; the row stays in the table

Only the repository writes these columns; request schemas never expose them
as inputs.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC datetime on every backend.

    PostgreSQL keeps the offset natively; SQLite returns naive values, which
    are tagged as UTC on load since everything is stored in UTC.
    """

    impl = DateTime
    cache_ok = True

    def __init__(self):
        super().__init__(timezone=True)

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ResourceMixin:
    """Identity, timestamps, soft-delete flag and order counter."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier, assigned at creation",
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        comment="When the record was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        comment="Last mutation: create, update or soft delete (UTC)",
    )

    # False after a soft delete; every read path filters on it
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
        index=True,
    )

    total_orders: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
