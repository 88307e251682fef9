from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from app.models.appointment import AppointmentStatus, ReminderTime
from app.models.finance import ExpenseCategory, PaymentMethod
from app.models.lab_case import LabCaseStatus
from app.models.patient import Gender
from app.models.supplier import SupplierInvoiceStatus, SupplierType
from app.services.dental_chart import normalize_chart

logger = logging.getLogger("clinic_manager.snapshot")


class SnapshotValidationError(Exception):
    def __init__(self, entity_type: str, entity_id: Any, errors: list[dict[str, Any]]) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.errors = errors
        super().__init__(f"Malformed {entity_type} record {entity_id}")


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class PatientView(_Record):
    id: int
    name: str
    dob: date | None = None
    gender: Gender
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    medical_history: str | None = None
    allergies: str | None = None
    medications: str | None = None
    last_visit: date | None = None
    dental_chart: dict[str, dict[str, str]] = {}

    @field_validator("dental_chart", mode="before")
    @classmethod
    def _chart(cls, value):
        return normalize_chart(value)


class DentistView(_Record):
    id: int
    name: str
    specialty: str = ""
    color: str = ""


class AppointmentView(_Record):
    id: int
    patient_id: int
    dentist_id: int | None = None
    start_time: datetime
    end_time: datetime
    reason: str = ""
    status: AppointmentStatus = AppointmentStatus.scheduled
    reminder_time: ReminderTime = ReminderTime.none
    reminder_sent: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _aware(value)


class TreatmentDefinitionView(_Record):
    id: int
    name: str
    description: str | None = None
    base_price_pence: int
    doctor_percentage: Decimal
    clinic_percentage: Decimal


class TreatmentItemView(_Record):
    inventory_item_id: int | None = None
    quantity: int = 1
    cost_pence: int = 0


class TreatmentRecordView(_Record):
    id: int
    patient_id: int
    dentist_id: int | None = None
    treatment_definition_id: int | None = None
    treatment_date: date
    notes: str | None = None
    inventory_items_used: tuple[TreatmentItemView, ...] = ()
    total_treatment_cost_pence: int
    doctor_share_pence: int
    clinic_share_pence: int


class PaymentView(_Record):
    id: int
    patient_id: int
    date: date
    amount_pence: int
    method: PaymentMethod
    notes: str | None = None


class ExpenseView(_Record):
    id: int
    date: date
    description: str = ""
    amount_pence: int
    category: ExpenseCategory
    supplier_id: int | None = None
    supplier_invoice_id: int | None = None


class InventoryItemView(_Record):
    id: int
    name: str
    description: str | None = None
    supplier_id: int | None = None
    current_stock: int
    unit_cost_pence: int = 0
    min_stock_level: int | None = None
    expiry_date: date | None = None


class SupplierView(_Record):
    id: int
    name: str
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    type: SupplierType


class SupplierInvoiceItemView(_Record):
    description: str
    amount_pence: int


class SupplierInvoicePaymentView(_Record):
    expense_id: int
    amount_pence: int
    date: date


class SupplierInvoiceView(_Record):
    id: int
    supplier_id: int
    invoice_number: str | None = None
    invoice_date: date
    due_date: date | None = None
    amount_pence: int
    status: SupplierInvoiceStatus = SupplierInvoiceStatus.unpaid
    items: tuple[SupplierInvoiceItemView, ...] = ()
    payments: tuple[SupplierInvoicePaymentView, ...] = ()


class LabCaseView(_Record):
    id: int
    patient_id: int
    lab_id: int
    case_type: str
    sent_date: date | None = None
    due_date: date
    return_date: date | None = None
    status: LabCaseStatus = LabCaseStatus.draft
    lab_cost_pence: int = 0
    notes: str | None = None


class ClinicSnapshot(_Record):
    patients: tuple[PatientView, ...] = ()
    dentists: tuple[DentistView, ...] = ()
    appointments: tuple[AppointmentView, ...] = ()
    treatment_definitions: tuple[TreatmentDefinitionView, ...] = ()
    treatment_records: tuple[TreatmentRecordView, ...] = ()
    payments: tuple[PaymentView, ...] = ()
    expenses: tuple[ExpenseView, ...] = ()
    inventory_items: tuple[InventoryItemView, ...] = ()
    suppliers: tuple[SupplierView, ...] = ()
    supplier_invoices: tuple[SupplierInvoiceView, ...] = ()
    lab_cases: tuple[LabCaseView, ...] = ()


RecordT = TypeVar("RecordT", bound=_Record)


def to_records(view: type[RecordT], entity_type: str, rows: Iterable[Any]) -> tuple[RecordT, ...]:
    records: list[RecordT] = []
    for row in rows:
        try:
            records.append(view.model_validate(row))
        except ValidationError as exc:
            entity_id = getattr(row, "id", None)
            logger.error("Snapshot mapping failed for %s %s: %s", entity_type, entity_id, exc)
            raise SnapshotValidationError(entity_type, entity_id, exc.errors()) from exc
    return tuple(records)
