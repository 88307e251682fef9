import datetime as dt
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.finance import ExpenseCategory, PaymentMethod
from app.schemas.common import PatchModel


class PaymentCreate(BaseModel):
    patient_id: int
    date: date
    amount_pence: int = Field(gt=0)
    method: PaymentMethod = PaymentMethod.cash
    notes: Optional[str] = None


class PaymentUpdate(PatchModel):
    not_null = frozenset({"patient_id", "date", "amount_pence", "method"})

    patient_id: Optional[int] = None
    date: Optional[dt.date] = None
    amount_pence: Optional[int] = Field(default=None, gt=0)
    method: Optional[PaymentMethod] = None
    notes: Optional[str] = None


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    date: date
    amount_pence: int
    method: PaymentMethod
    notes: Optional[str] = None
    created_at: datetime


class ExpenseCreate(BaseModel):
    date: date
    description: str = ""
    amount_pence: int = Field(gt=0)
    category: ExpenseCategory
    supplier_id: Optional[int] = None
    supplier_invoice_id: Optional[int] = None


class ExpenseUpdate(PatchModel):
    not_null = frozenset({"date", "description", "amount_pence", "category"})

    date: Optional[dt.date] = None
    description: Optional[str] = None
    amount_pence: Optional[int] = Field(default=None, gt=0)
    category: Optional[ExpenseCategory] = None
    supplier_id: Optional[int] = None


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    description: str
    amount_pence: int
    category: ExpenseCategory
    supplier_id: Optional[int] = None
    supplier_invoice_id: Optional[int] = None
    created_at: datetime
