import datetime as dt
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.supplier import SupplierInvoiceStatus, SupplierType
from app.schemas.common import PatchModel
from app.schemas.finance import ExpenseOut


class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    type: SupplierType = SupplierType.material_supplier


class SupplierUpdate(PatchModel):
    not_null = frozenset({"name", "type"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    type: Optional[SupplierType] = None


class SupplierOut(SupplierCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class SupplierInvoiceItemIn(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    description: str = Field(min_length=1, max_length=255)
    amount_pence: int = Field(default=0, ge=0)


class SupplierInvoicePaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    expense_id: int
    amount_pence: int
    date: date


class SupplierInvoiceCreate(BaseModel):
    supplier_id: int
    invoice_number: Optional[str] = None
    invoice_date: date
    due_date: Optional[date] = None
    amount_pence: int = Field(ge=0)
    items: list[SupplierInvoiceItemIn] = []


class SupplierInvoiceUpdate(PatchModel):
    not_null = frozenset({"supplier_id", "invoice_date", "amount_pence", "items"})

    supplier_id: Optional[int] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    amount_pence: Optional[int] = Field(default=None, ge=0)
    items: Optional[list[SupplierInvoiceItemIn]] = None


class SupplierInvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    supplier_id: int
    invoice_number: Optional[str] = None
    invoice_date: date
    due_date: Optional[date] = None
    amount_pence: int
    status: SupplierInvoiceStatus
    items: list[SupplierInvoiceItemIn]
    payments: list[SupplierInvoicePaymentOut]
    paid_pence: int
    balance_pence: int


class SupplierPaymentCreate(BaseModel):
    amount_pence: int = Field(gt=0)
    date: Optional[dt.date] = None
    description: Optional[str] = None


class SupplierPaymentOut(BaseModel):
    paid: bool
    expense: Optional[ExpenseOut] = None
    invoice: SupplierInvoiceOut
