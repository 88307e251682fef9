from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import PatchModel


class InventoryItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    supplier_id: Optional[int] = None
    current_stock: int = Field(default=0, ge=0)
    unit_cost_pence: int = Field(default=0, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None


class InventoryItemUpdate(PatchModel):
    not_null = frozenset({"name", "current_stock", "unit_cost_pence"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    supplier_id: Optional[int] = None
    current_stock: Optional[int] = Field(default=None, ge=0)
    unit_cost_pence: Optional[int] = Field(default=None, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None


class InventoryItemOut(InventoryItemCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
