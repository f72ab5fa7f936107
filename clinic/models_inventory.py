"""
Inventory items and their stock movements
"""

import enum
from datetime import timedelta

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .shared.time_utils import utcnow


class InventoryTransactionType(str, enum.Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"
    USAGE = "USAGE"
    ADJUSTMENT = "ADJUSTMENT"
    EXPIRED = "EXPIRED"


ADDITIVE_TRANSACTION_TYPES = (InventoryTransactionType.PURCHASE, InventoryTransactionType.ADJUSTMENT)


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    unit = Column(String(50), nullable=False)  # pack, box, ml, piece
    current_stock = Column(Integer, default=0, nullable=False)
    min_stock_level = Column(Integer, default=0, nullable=False)
    max_stock_level = Column(Integer, nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=True)
    expiry_date = Column(Date, nullable=True)
    supplier = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)  # Soft delete flag
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    transactions = relationship(
        "InventoryTransaction",
        back_populates="item",
        order_by="desc(InventoryTransaction.transaction_date)",
    )

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock_level

    def is_expiring_within(self, days: int) -> bool:
        if self.expiry_date is None:
            return False
        return self.expiry_date <= utcnow().date() + timedelta(days=days)


class InventoryTransaction(Base):
    """Append-only record of one stock movement"""

    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False, index=True)
    treatment_id = Column(Integer, ForeignKey("treatments.id"), nullable=True)
    type = Column(Enum(InventoryTransactionType, native_enum=False, length=20), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=True)  # quantity * unit_price when priced
    stock_after = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    performed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    transaction_date = Column(DateTime, default=utcnow, nullable=False)

    item = relationship("InventoryItem", back_populates="transactions")
