"""Inventory router - FastAPI endpoints for items and stock movements"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.schemas import ApiResponse, MessageResponse
from .schemas import (
    InventoryFilter,
    InventoryItemCreate,
    InventoryItemDetail,
    InventoryItemResponse,
    InventoryItemUpdate,
    InventoryListResponse,
    InventoryTransactionCreate,
    InventoryTransactionResponse,
)
from .service import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    """Dependency injection for InventoryService"""
    return InventoryService(db)


@router.post("", response_model=ApiResponse[InventoryItemResponse], status_code=status.HTTP_201_CREATED)
async def create_item(
    data: InventoryItemCreate,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    item = service.create_item(data)
    return {"success": True, "data": InventoryItemResponse.model_validate(item)}


@router.get("", response_model=ApiResponse[InventoryListResponse])
async def get_items(
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, alias="lowStock"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    """List active items by name"""
    items, pagination = service.get_items(InventoryFilter(category=category, low_stock=low_stock), page, limit)
    return {
        "success": True,
        "data": {
            "items": [InventoryItemResponse.model_validate(i) for i in items],
            "pagination": pagination,
        },
    }


@router.get("/low-stock", response_model=ApiResponse[list[InventoryItemResponse]])
async def get_low_stock_items(
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    items = service.get_low_stock_items()
    return {"success": True, "data": [InventoryItemResponse.model_validate(i) for i in items]}


@router.get("/expiring-soon", response_model=ApiResponse[list[InventoryItemResponse]])
async def get_expiring_items(
    days: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    """Items expiring within `days` (default from LOW_STOCK_EXPIRY_DAYS)"""
    items = service.get_expiring_items(days)
    return {"success": True, "data": [InventoryItemResponse.model_validate(i) for i in items]}


@router.get("/{item_id}", response_model=ApiResponse[InventoryItemDetail])
async def get_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    """Item with its 50 most recent stock movements"""
    item, transactions = service.get_item_with_transactions(item_id)
    detail = InventoryItemDetail(
        **InventoryItemResponse.model_validate(item).model_dump(),
        transactions=[InventoryTransactionResponse.model_validate(t) for t in transactions],
    )
    return {"success": True, "data": detail}


@router.put("/{item_id}", response_model=ApiResponse[InventoryItemResponse])
async def update_item(
    item_id: int,
    data: InventoryItemUpdate,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    item = service.update_item(item_id, data)
    return {"success": True, "data": InventoryItemResponse.model_validate(item)}


@router.delete("/{item_id}", response_model=ApiResponse[MessageResponse])
async def delete_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    service.delete_item(item_id)
    return {"success": True, "data": {"message": "Inventory item deleted"}}


@router.post(
    "/{item_id}/transaction",
    response_model=ApiResponse[InventoryTransactionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    item_id: int,
    data: InventoryTransactionCreate,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    """Apply a stock movement; rejected if stock would go negative"""
    transaction = service.apply_transaction(item_id, data, performed_by=current_user.id)
    return {"success": True, "data": InventoryTransactionResponse.model_validate(transaction)}
