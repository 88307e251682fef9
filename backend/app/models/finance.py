from __future__ import annotations

import enum
import datetime as dt

from sqlalchemy import Date, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, OwnedMixin


class PaymentMethod(str, enum.Enum):
    cash = "CASH"
    card = "CARD"
    bank_transfer = "BANK_TRANSFER"
    other = "OTHER"
    discount = "DISCOUNT"


class ExpenseCategory(str, enum.Enum):
    rent = "RENT"
    salaries = "SALARIES"
    utilities = "UTILITIES"
    lab_fees = "LAB_FEES"
    supplies = "SUPPLIES"
    marketing = "MARKETING"
    misc = "MISC"


class Payment(Base, OwnedMixin):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    amount_pence: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, name="payment_method"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    patient = relationship("Patient", back_populates="payments")


class Expense(Base, OwnedMixin):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    amount_pence: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[ExpenseCategory] = mapped_column(
        Enum(ExpenseCategory, name="expense_category"), nullable=False
    )
    supplier_id: Mapped[int | None] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    supplier_invoice_id: Mapped[int | None] = mapped_column(
        ForeignKey("supplier_invoices.id", ondelete="SET NULL"), nullable=True, index=True
    )
