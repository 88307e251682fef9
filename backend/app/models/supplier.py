from __future__ import annotations

import enum
import datetime as dt

from sqlalchemy import Date, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, OwnedMixin


class SupplierType(str, enum.Enum):
    material_supplier = "MATERIAL_SUPPLIER"
    dental_lab = "DENTAL_LAB"


class SupplierInvoiceStatus(str, enum.Enum):
    unpaid = "UNPAID"
    partially_paid = "PARTIALLY_PAID"
    paid = "PAID"


class Supplier(Base, OwnedMixin):
    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(120), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    type: Mapped[SupplierType] = mapped_column(
        Enum(SupplierType, name="supplier_type"),
        default=SupplierType.material_supplier,
        nullable=False,
    )

    invoices = relationship("SupplierInvoice", back_populates="supplier")


class SupplierInvoice(Base, OwnedMixin):
    __tablename__ = "supplier_invoices"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id"), nullable=False, index=True)
    invoice_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    invoice_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    due_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    amount_pence: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[SupplierInvoiceStatus] = mapped_column(
        Enum(SupplierInvoiceStatus, name="supplier_invoice_status"),
        default=SupplierInvoiceStatus.unpaid,
        nullable=False,
    )

    supplier = relationship("Supplier", back_populates="invoices")
    items = relationship(
        "SupplierInvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    payments = relationship(
        "SupplierInvoicePayment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SupplierInvoicePayment.id",
    )

    @property
    def paid_pence(self) -> int:
        return sum(payment.amount_pence for payment in self.payments or [])

    @property
    def balance_pence(self) -> int:
        return self.amount_pence - self.paid_pence


class SupplierInvoiceItem(Base):
    __tablename__ = "supplier_invoice_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("supplier_invoices.id"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount_pence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    invoice = relationship("SupplierInvoice", back_populates="items")


class SupplierInvoicePayment(Base):
    __tablename__ = "supplier_invoice_payments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("supplier_invoices.id"), nullable=False, index=True
    )
    expense_id: Mapped[int] = mapped_column(ForeignKey("expenses.id"), nullable=False)
    amount_pence: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    invoice = relationship("SupplierInvoice", back_populates="payments")
