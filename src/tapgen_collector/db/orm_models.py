"""
SQLAlchemy ORM models for database tables.

These models represent the database schema and are used for ORM operations.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime, Float
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class SampleReading(Base):
    """
    SQLAlchemy model for the samples table.

    One decoded measurement of one device point at one poll tick.
    Uses composite primary key (timestamp, group_name, device, code).
    """
    __tablename__ = "samples"

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        primary_key=True,
        nullable=False,
        comment="Capture time of the batched read (UTC)"
    )

    group_name: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        nullable=False,
        comment="Device group the sample was reported in"
    )

    device: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        nullable=False,
        index=True,
        comment="Device name"
    )

    code: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
        nullable=False,
        comment="Register point code"
    )

    device_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Register catalog device type"
    )

    display_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Human-readable point name (denormalized from the catalog)"
    )

    unit: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Engineering unit (denormalized from the catalog)"
    )

    value: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Scaled value, NULL when the decoded value was not finite"
    )

    def __repr__(self) -> str:
        return (
            f"<SampleReading(timestamp={self.timestamp}, device='{self.device}', "
            f"code='{self.code}', value={self.value})>"
        )
