"""Inventory service - the stock ledger"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import EXPIRY_WARNING_DAYS
from ...exceptions import BusinessRuleError, NotFoundError
from ...models_inventory import (
    ADDITIVE_TRANSACTION_TYPES,
    InventoryItem,
    InventoryTransaction,
    InventoryTransactionType,
)
from ...shared.money import to_money
from ...shared.pagination import Pagination
from ...shared.time_utils import utcnow
from .repository import InventoryRepository
from .schemas import (
    InventoryFilter,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryTransactionCreate,
)

logger = logging.getLogger(__name__)

# Explicit nulls for these columns are ignored on update
REQUIRED_ITEM_FIELDS = frozenset({"name", "category", "unit", "min_stock_level", "is_active"})


def signed_delta(transaction_type: InventoryTransactionType, quantity: int) -> int:
    """PURCHASE and ADJUSTMENT add stock; SALE, USAGE and EXPIRED remove it"""
    return quantity if transaction_type in ADDITIVE_TRANSACTION_TYPES else -quantity


class InventoryService:
    """Service layer for inventory business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = InventoryRepository()

    def create_item(self, data: InventoryItemCreate) -> InventoryItem:
        item = InventoryItem(**data.model_dump())
        if item.unit_price is not None:
            item.unit_price = to_money(item.unit_price)
        item = self.repo.create(self.db, item)
        logger.info(f"Inventory item {item.id} ({item.name}) created with stock {item.current_stock}")
        return item

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.repo.get_by_id(self.db, item_id)
        if not item:
            raise NotFoundError("Inventory item not found")
        return item

    def get_item_with_transactions(
        self, item_id: int, limit: int = 50
    ) -> tuple[InventoryItem, list[InventoryTransaction]]:
        item = self.get_item(item_id)
        return item, self.repo.get_recent_transactions(self.db, item_id, limit)

    def get_items(
        self, filters: InventoryFilter, page: int = 1, limit: int = 20
    ) -> tuple[list[InventoryItem], Pagination]:
        return self.repo.get_items(self.db, filters, page, limit)

    def update_item(self, item_id: int, data: InventoryItemUpdate) -> InventoryItem:
        """Update item details; current_stock is never touched here"""
        item = self.get_item(item_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None and key in REQUIRED_ITEM_FIELDS:
                continue
            setattr(item, key, value)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Inventory item {item.id} updated")
        return item

    def delete_item(self, item_id: int) -> None:
        """Soft delete: the item and its ledger stay for history"""
        item = self.get_item(item_id)
        item.is_active = False
        self.db.commit()
        logger.info(f"Inventory item {item.id} deactivated")

    def get_low_stock_items(self) -> list[InventoryItem]:
        return self.repo.get_low_stock(self.db)

    def get_expiring_items(self, days: Optional[int] = None) -> list[InventoryItem]:
        days = EXPIRY_WARNING_DAYS if days is None else days
        return self.repo.get_expiring(self.db, utcnow().date() + timedelta(days=days))

    def apply_transaction(
        self, item_id: int, data: InventoryTransactionCreate, performed_by: Optional[int] = None
    ) -> InventoryTransaction:
        """
        Record a stock movement and update the item's stock in one transaction.

        Raises BusinessRuleError without touching the item when the movement
        would take stock below zero.
        """
        delta = signed_delta(data.type, data.quantity)
        try:
            item = self.repo.lock_item(self.db, item_id)
            if not item or not item.is_active:
                raise NotFoundError("Inventory item not found")

            new_stock = item.current_stock + delta
            if new_stock < 0:
                logger.warning(
                    f"Insufficient stock for item {item.id}: {item.current_stock} on hand, "
                    f"{data.type.value} of {data.quantity}"
                )
                raise BusinessRuleError(
                    "Insufficient stock",
                    context={
                        "currentStock": item.current_stock,
                        "delta": delta,
                        "quantity": data.quantity,
                        "type": data.type.value,
                    },
                )

            unit_price = to_money(data.unit_price) if data.unit_price is not None else None
            transaction = InventoryTransaction(
                inventory_id=item.id,
                treatment_id=data.treatment_id,
                type=data.type,
                quantity=data.quantity,
                unit_price=unit_price,
                total_amount=to_money(data.quantity * unit_price) if unit_price is not None else None,
                stock_after=new_stock,
                notes=data.notes,
                performed_by=performed_by,
                transaction_date=data.transaction_date or utcnow(),
            )
            self.repo.add_transaction(self.db, transaction)
            item.current_stock = new_stock
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(transaction)
        logger.info(
            f"Inventory item {item_id}: {data.type.value} {delta:+d} -> stock {new_stock}"
        )
        return transaction
