"""Inventory domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...config import EXPIRY_WARNING_DAYS
from ...models_inventory import InventoryTransactionType
from ...shared.pagination import Pagination
from ...shared.schemas import CamelModel, Money, normalize_datetime


class InventoryItemCreate(CamelModel):
    """Schema for creating an inventory item"""

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(min_length=1, max_length=100)
    unit: str = Field(min_length=1, max_length=50)
    current_stock: int = Field(default=0, ge=0)
    min_stock_level: int = Field(default=0, ge=0)
    max_stock_level: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    expiry_date: Optional[date] = None
    supplier: Optional[str] = None


class InventoryItemUpdate(CamelModel):
    """Item details only; stock moves exclusively through transactions"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=50)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    max_stock_level: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    expiry_date: Optional[date] = None
    supplier: Optional[str] = None
    is_active: Optional[bool] = None


class InventoryTransactionCreate(CamelModel):
    """Schema for a single stock movement"""

    type: InventoryTransactionType
    quantity: int = Field(gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    treatment_id: Optional[int] = None
    notes: Optional[str] = None
    transaction_date: Optional[datetime] = None

    @field_validator("transaction_date")
    @classmethod
    def to_utc(cls, v):
        return normalize_datetime(v)


class InventoryFilter(BaseModel):
    category: Optional[str] = None
    low_stock: bool = False


class InventoryTransactionResponse(CamelModel):
    id: int
    inventory_id: int
    treatment_id: Optional[int] = None
    type: InventoryTransactionType
    quantity: int
    unit_price: Optional[Money] = None
    total_amount: Optional[Money] = None
    stock_after: int
    notes: Optional[str] = None
    performed_by: Optional[int] = None
    transaction_date: datetime


class InventoryItemResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    unit: str
    current_stock: int
    min_stock_level: int
    max_stock_level: Optional[int] = None
    unit_price: Optional[Money] = None
    expiry_date: Optional[date] = None
    supplier: Optional[str] = None
    is_active: bool
    is_low_stock: bool
    is_expiring_soon: bool = False

    @model_validator(mode="before")
    @classmethod
    def derive_expiry_flag(cls, data):
        # ORM rows carry is_expiring_within(); dicts arrive already flagged
        if hasattr(data, "is_expiring_within"):
            fields = {
                name: getattr(data, name)
                for name in InventoryItemResponse.model_fields
                if hasattr(data, name)
            }
            fields["is_expiring_soon"] = data.is_expiring_within(EXPIRY_WARNING_DAYS)
            return fields
        return data


class InventoryItemDetail(InventoryItemResponse):
    transactions: list[InventoryTransactionResponse] = []


class InventoryListResponse(BaseModel):
    items: list[InventoryItemResponse]
    pagination: Pagination
