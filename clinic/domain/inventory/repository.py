"""Inventory repository - Database operations for items and stock movements"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models_inventory import InventoryItem, InventoryTransaction
from ...shared.pagination import Pagination, paginate
from .schemas import InventoryFilter


class InventoryRepository:
    """Repository for inventory database operations"""

    @staticmethod
    def create(db: Session, item: InventoryItem) -> InventoryItem:
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def get_by_id(db: Session, item_id: int) -> Optional[InventoryItem]:
        return db.query(InventoryItem).filter(InventoryItem.id == item_id).first()

    @staticmethod
    def lock_item(db: Session, item_id: int) -> Optional[InventoryItem]:
        """Load the item with a row lock; concurrent stock movements serialize here"""
        return db.get(InventoryItem, item_id, with_for_update=True)

    @staticmethod
    def get_items(
        db: Session, filters: InventoryFilter, page: int, limit: int
    ) -> tuple[list[InventoryItem], Pagination]:
        query = db.query(InventoryItem).filter(InventoryItem.is_active.is_(True))

        if filters.category:
            query = query.filter(InventoryItem.category == filters.category)
        if filters.low_stock:
            query = query.filter(InventoryItem.current_stock <= InventoryItem.min_stock_level)

        return paginate(query.order_by(InventoryItem.name.asc()), page, limit)

    @staticmethod
    def get_low_stock(db: Session) -> list[InventoryItem]:
        """Active items at or below their minimum level, lowest stock first"""
        return (
            db.query(InventoryItem)
            .filter(
                InventoryItem.is_active.is_(True),
                InventoryItem.current_stock <= InventoryItem.min_stock_level,
            )
            .order_by(InventoryItem.current_stock.asc(), InventoryItem.name.asc())
            .all()
        )

    @staticmethod
    def count_low_stock(db: Session) -> int:
        return (
            db.query(InventoryItem)
            .filter(
                InventoryItem.is_active.is_(True),
                InventoryItem.current_stock <= InventoryItem.min_stock_level,
            )
            .count()
        )

    @staticmethod
    def get_expiring(db: Session, cutoff: date) -> list[InventoryItem]:
        """Active items whose expiry date falls on or before the cutoff"""
        return (
            db.query(InventoryItem)
            .filter(
                InventoryItem.is_active.is_(True),
                InventoryItem.expiry_date.isnot(None),
                InventoryItem.expiry_date <= cutoff,
            )
            .order_by(InventoryItem.expiry_date.asc())
            .all()
        )

    @staticmethod
    def add_transaction(db: Session, transaction: InventoryTransaction) -> InventoryTransaction:
        db.add(transaction)
        db.flush()
        return transaction

    @staticmethod
    def get_recent_transactions(
        db: Session, item_id: int, limit: int = 50
    ) -> list[InventoryTransaction]:
        return (
            db.query(InventoryTransaction)
            .filter(InventoryTransaction.inventory_id == item_id)
            .order_by(InventoryTransaction.transaction_date.desc(), InventoryTransaction.id.desc())
            .limit(limit)
            .all()
        )
