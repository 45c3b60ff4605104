"""
Module: stock_kernel.db.base
Responsibility: Declarative base for the stock ledger's ORM models: UUID
    primary keys, one column type per Python type, and a created_at stamp.
Architecture position: Kernel > DB.  Imported by every model; imports
    nothing from the rest of the kernel.

Invariants enforced:
    - Ids are uuid4 values stored as 36-character strings, the same on
      PostgreSQL and SQLite.
    - Unit costs map to Numeric(38, 9) and never pass through float.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        date: Date,
        datetime: DateTime(timezone=True),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TimestampedBase(Base):
    """Models whose rows record when they were inserted."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
