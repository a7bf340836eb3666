"""
Receipt, ReceiptItem and Modifier database models.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from receipt_splitter.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Receipt(Base):
    """A stored receipt owned by one user."""

    __tablename__ = "receipts"
    __table_args__ = (
        Index("idx_receipt_user_created", "user_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String, nullable=False, default="")
    reason = Column(Text, nullable=False, default="")
    monzo_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="receipts")
    items = relationship(
        "ReceiptItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="ReceiptItem.position",
        passive_deletes=True,
    )
    modifiers = relationship(
        "Modifier",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="Modifier.position",
        passive_deletes=True,
    )


class ReceiptItem(Base):
    """A single line on a receipt. ``price`` is per unit and may be unknown."""

    __tablename__ = "receipt_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    receipt_id = Column(
        String(36),
        ForeignKey("receipts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    item = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=True)
    qty = Column(Integer, nullable=False, default=1)

    # Relationships
    receipt = relationship("Receipt", back_populates="items")


class Modifier(Base):
    """Tax, discount, service charge or similar adjustment on a receipt."""

    __tablename__ = "modifiers"

    id = Column(String(36), primary_key=True, default=_uuid)
    receipt_id = Column(
        String(36),
        ForeignKey("receipts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    type = Column(String, nullable=False, default="")
    value = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)
    include = Column(Boolean, nullable=False, default=True)

    # Relationships
    receipt = relationship("Receipt", back_populates="modifiers")
