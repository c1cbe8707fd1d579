"""SQLAlchemy declarative base and common column mixins for Reviewpool.

This module defines the DeclarativeBase class and a TimestampMixin that
provides created_at and updated_at columns for the mutable entities
(teams, users, pull requests).

Example:
    >>> class MyModel(TimestampMixin, Base):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(Text, nullable=False)
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy 2.0 declarative base for all Reviewpool models."""

    pass


class TimestampMixin:
    """Mixin providing created_at and updated_at columns.

    Primary keys are declared per model: users and pull requests are keyed
    by caller-supplied identifiers, teams and history rows by serial ids.

    Attributes:
        created_at: Timestamp set by the database on row creation.
        updated_at: Timestamp set by the database on row creation and
                    updated on each modification.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
