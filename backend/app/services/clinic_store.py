from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterator, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.appointment import Appointment, AppointmentStatus
from app.models.dentist import Dentist
from app.models.finance import Expense, ExpenseCategory, Payment
from app.models.inventory import InventoryItem
from app.models.lab_case import LabCase, LabCaseStatus
from app.models.patient import Patient
from app.models.supplier import (
    Supplier,
    SupplierInvoice,
    SupplierInvoiceItem,
    SupplierInvoicePayment,
    SupplierType,
)
from app.models.treatment import TreatmentDefinition, TreatmentRecord, TreatmentRecordItem
from app.models.user import User
from app.services import dental_chart
from app.services.audit import log_event, snapshot_model
from app.services.finance import clinic_today, split_treatment_cost
from app.services.snapshot import (
    AppointmentView,
    ClinicSnapshot,
    DentistView,
    ExpenseView,
    InventoryItemView,
    LabCaseView,
    PatientView,
    PaymentView,
    SupplierInvoiceView,
    SupplierView,
    TreatmentDefinitionView,
    TreatmentRecordView,
    to_records,
)
from app.services.transitions import (
    InvalidTransitionError,
    ensure_appointment_transition,
    ensure_lab_case_transition,
    invoice_status_for,
)

logger = logging.getLogger("clinic_manager.store")

ModelT = TypeVar("ModelT")

PERCENTAGE_TOLERANCE = Decimal("0.0001")

__all__ = [
    "ClinicStore",
    "ClinicStoreError",
    "InvalidTransitionError",
    "RecordNotFoundError",
]


class ClinicStoreError(ValueError):
    pass


class RecordNotFoundError(LookupError):
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.replace('_', ' ').capitalize()} not found")


class ClinicStore:
    """Reads and writes clinic records for one owner account.

    Every query is scoped to the owner. Each mutation writes an audit entry
    and commits once; a failed write is rolled back before the error
    propagates.
    """

    def __init__(self, db: Session, owner: User) -> None:
        self.db = db
        self.owner = owner

    # -- plumbing -----------------------------------------------------------

    @contextmanager
    def _transaction(self, action: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Store write failed (%s)", action)
            raise
        except Exception:
            self.db.rollback()
            raise

    def _audit(self, action: str, entity_type: str, obj: Any, before: dict | None = None) -> None:
        log_event(
            self.db,
            actor=self.owner,
            action=action,
            entity_type=entity_type,
            entity_id=str(obj.id),
            before_data=before,
            after_obj=obj,
        )

    def _scoped(self, model: type[ModelT]):
        return select(model).where(model.owner_user_id == self.owner.id)

    def _list(self, stmt) -> list:
        return list(self.db.scalars(stmt))

    def _get(self, model: type[ModelT], entity_type: str, entity_id: int) -> ModelT:
        obj = self.db.scalar(self._scoped(model).where(model.id == entity_id))
        if obj is None:
            raise RecordNotFoundError(entity_type, entity_id)
        return obj

    def _reference(self, model: type[ModelT], label: str, entity_id: int | None) -> ModelT | None:
        if entity_id is None:
            return None
        obj = self.db.scalar(self._scoped(model).where(model.id == entity_id))
        if obj is None:
            raise ClinicStoreError(f"Unknown {label} {entity_id}")
        return obj

    def _create(self, entity_type: str, obj: Any) -> Any:
        with self._transaction(f"{entity_type}.create"):
            self.db.add(obj)
            self.db.flush()
            self._audit(f"{entity_type}.create", entity_type, obj)
        self.db.refresh(obj)
        return obj

    def _apply(self, entity_type: str, obj: Any, changes: dict[str, Any], before: dict | None = None) -> Any:
        before = before if before is not None else snapshot_model(obj)
        with self._transaction(f"{entity_type}.update"):
            for field, value in changes.items():
                setattr(obj, field, value)
            self.db.flush()
            self._audit(f"{entity_type}.update", entity_type, obj, before=before)
        self.db.refresh(obj)
        return obj

    # -- snapshot -----------------------------------------------------------

    def snapshot(self) -> ClinicSnapshot:
        return ClinicSnapshot(
            patients=to_records(PatientView, "patient", self.list_patients()),
            dentists=to_records(DentistView, "dentist", self.list_dentists()),
            appointments=to_records(AppointmentView, "appointment", self.list_appointments()),
            treatment_definitions=to_records(
                TreatmentDefinitionView, "treatment_definition", self.list_treatment_definitions()
            ),
            treatment_records=to_records(
                TreatmentRecordView, "treatment_record", self.list_treatment_records()
            ),
            payments=to_records(PaymentView, "payment", self.list_payments()),
            expenses=to_records(ExpenseView, "expense", self.list_expenses()),
            inventory_items=to_records(InventoryItemView, "inventory_item", self.list_inventory_items()),
            suppliers=to_records(SupplierView, "supplier", self.list_suppliers()),
            supplier_invoices=to_records(
                SupplierInvoiceView, "supplier_invoice", self.list_supplier_invoices()
            ),
            lab_cases=to_records(LabCaseView, "lab_case", self.list_lab_cases()),
        )

    # -- patients -----------------------------------------------------------

    def list_patients(self, query: str | None = None) -> list[Patient]:
        stmt = self._scoped(Patient).order_by(Patient.name.asc(), Patient.id.asc())
        if query:
            like = f"%{query.strip()}%"
            stmt = stmt.where(Patient.name.ilike(like) | Patient.phone.ilike(like))
        return self._list(stmt)

    def get_patient(self, patient_id: int) -> Patient:
        return self._get(Patient, "patient", patient_id)

    def add_patient(self, data: dict[str, Any]) -> Patient:
        fields = {key: value for key, value in data.items() if key != "dental_chart"}
        patient = Patient(
            owner_user_id=self.owner.id,
            dental_chart=dental_chart.create_empty_chart(),
            **fields,
        )
        return self._create("patient", patient)

    def update_patient(self, patient_id: int, changes: dict[str, Any]) -> Patient:
        patient = self.get_patient(patient_id)
        changes = dict(changes)
        if "dental_chart" in changes:
            changes["dental_chart"] = self._checked_chart(changes["dental_chart"])
        return self._apply("patient", patient, changes)

    def _checked_chart(self, chart: Any) -> dict:
        try:
            return dental_chart.normalize_chart(chart)
        except dental_chart.InvalidToothError as exc:
            raise ClinicStoreError(str(exc)) from exc

    def replace_chart(self, patient_id: int, chart: dict[str, Any]) -> Patient:
        return self.update_patient(patient_id, {"dental_chart": chart})

    def update_tooth(self, patient_id: int, tooth_id: str, tooth: dict[str, Any]) -> Patient:
        patient = self.get_patient(patient_id)
        try:
            chart = dental_chart.update_tooth(patient.dental_chart, tooth_id, tooth)
        except dental_chart.InvalidToothError as exc:
            raise ClinicStoreError(str(exc)) from exc
        before = {"tooth_id": tooth_id, "tooth": (patient.dental_chart or {}).get(tooth_id)}
        with self._transaction("patient.tooth_update"):
            patient.dental_chart = chart
            self.db.flush()
            log_event(
                self.db,
                actor=self.owner,
                action="patient.tooth_update",
                entity_type="patient",
                entity_id=str(patient.id),
                before_data=before,
                after_data={"tooth_id": tooth_id, "tooth": chart[tooth_id]},
            )
        self.db.refresh(patient)
        return patient

    # -- dentists -----------------------------------------------------------

    def list_dentists(self) -> list[Dentist]:
        return self._list(self._scoped(Dentist).order_by(Dentist.name.asc(), Dentist.id.asc()))

    def get_dentist(self, dentist_id: int) -> Dentist:
        return self._get(Dentist, "dentist", dentist_id)

    def add_dentist(self, data: dict[str, Any]) -> Dentist:
        return self._create("dentist", Dentist(owner_user_id=self.owner.id, **data))

    def update_dentist(self, dentist_id: int, changes: dict[str, Any]) -> Dentist:
        return self._apply("dentist", self.get_dentist(dentist_id), changes)

    # -- appointments -------------------------------------------------------

    def list_appointments(
        self,
        *,
        patient_id: int | None = None,
        dentist_id: int | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        stmt = self._scoped(Appointment).order_by(Appointment.start_time.asc(), Appointment.id.asc())
        if patient_id is not None:
            stmt = stmt.where(Appointment.patient_id == patient_id)
        if dentist_id is not None:
            stmt = stmt.where(Appointment.dentist_id == dentist_id)
        if status is not None:
            stmt = stmt.where(Appointment.status == status)
        return self._list(stmt)

    def get_appointment(self, appointment_id: int) -> Appointment:
        return self._get(Appointment, "appointment", appointment_id)

    def add_appointment(self, data: dict[str, Any]) -> Appointment:
        self._reference(Patient, "patient", data.get("patient_id"))
        self._reference(Dentist, "dentist", data.get("dentist_id"))
        data = _utc_times(data)
        if data["end_time"] <= data["start_time"]:
            raise ClinicStoreError("Appointment must end after it starts")
        return self._create("appointment", Appointment(owner_user_id=self.owner.id, **data))

    def update_appointment(self, appointment_id: int, changes: dict[str, Any]) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        changes = _utc_times(changes)
        if "patient_id" in changes:
            self._reference(Patient, "patient", changes["patient_id"])
        if "dentist_id" in changes:
            self._reference(Dentist, "dentist", changes["dentist_id"])
        if changes.get("status") is not None:
            ensure_appointment_transition(appointment.status, AppointmentStatus(changes["status"]))
        if appointment.reminder_sent and changes.get("reminder_sent") is False:
            raise ClinicStoreError("A sent reminder cannot be marked unsent")
        start = changes.get("start_time", appointment.start_time)
        end = changes.get("end_time", appointment.end_time)
        if end is not None and start is not None and _utc(end) <= _utc(start):
            raise ClinicStoreError("Appointment must end after it starts")
        return self._apply("appointment", appointment, changes)

    def mark_reminder_sent(self, appointment_id: int) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment.reminder_sent:
            return appointment
        before = snapshot_model(appointment)
        with self._transaction("appointment.reminder_sent"):
            appointment.reminder_sent = True
            self.db.flush()
            self._audit("appointment.reminder_sent", "appointment", appointment, before=before)
        self.db.refresh(appointment)
        return appointment

    # -- treatment definitions ---------------------------------------------

    def list_treatment_definitions(self) -> list[TreatmentDefinition]:
        return self._list(
            self._scoped(TreatmentDefinition).order_by(
                TreatmentDefinition.name.asc(), TreatmentDefinition.id.asc()
            )
        )

    def get_treatment_definition(self, definition_id: int) -> TreatmentDefinition:
        return self._get(TreatmentDefinition, "treatment_definition", definition_id)

    @staticmethod
    def _check_split(doctor: Decimal, clinic: Decimal) -> None:
        if doctor < 0 or clinic < 0:
            raise ClinicStoreError("Percentages must not be negative")
        if abs(Decimal(doctor) + Decimal(clinic) - Decimal(1)) > PERCENTAGE_TOLERANCE:
            raise ClinicStoreError("Doctor and clinic percentages must add up to 1")

    def add_treatment_definition(self, data: dict[str, Any]) -> TreatmentDefinition:
        self._check_split(Decimal(str(data["doctor_percentage"])), Decimal(str(data["clinic_percentage"])))
        return self._create(
            "treatment_definition", TreatmentDefinition(owner_user_id=self.owner.id, **data)
        )

    def update_treatment_definition(
        self, definition_id: int, changes: dict[str, Any]
    ) -> TreatmentDefinition:
        definition = self.get_treatment_definition(definition_id)
        doctor = Decimal(str(changes.get("doctor_percentage", definition.doctor_percentage)))
        clinic = Decimal(str(changes.get("clinic_percentage", definition.clinic_percentage)))
        self._check_split(doctor, clinic)
        return self._apply("treatment_definition", definition, changes)

    # -- treatment records --------------------------------------------------

    def list_treatment_records(
        self, *, patient_id: int | None = None, dentist_id: int | None = None
    ) -> list[TreatmentRecord]:
        stmt = self._scoped(TreatmentRecord).order_by(
            TreatmentRecord.treatment_date.asc(), TreatmentRecord.id.asc()
        )
        if patient_id is not None:
            stmt = stmt.where(TreatmentRecord.patient_id == patient_id)
        if dentist_id is not None:
            stmt = stmt.where(TreatmentRecord.dentist_id == dentist_id)
        return self._list(stmt)

    def get_treatment_record(self, record_id: int) -> TreatmentRecord:
        return self._get(TreatmentRecord, "treatment_record", record_id)

    def _record_items(self, items: list[dict[str, Any]]) -> list[TreatmentRecordItem]:
        rows: list[TreatmentRecordItem] = []
        for item in items:
            inventory_item = self._reference(InventoryItem, "inventory item", item.get("inventory_item_id"))
            quantity = int(item.get("quantity") or 1)
            cost = item.get("cost_pence")
            if cost is None:
                if inventory_item is None:
                    raise ClinicStoreError("Material cost is required when no inventory item is given")
                cost = inventory_item.unit_cost_pence * quantity
            if cost < 0:
                raise ClinicStoreError("Material cost must not be negative")
            rows.append(
                TreatmentRecordItem(
                    inventory_item_id=item.get("inventory_item_id"),
                    quantity=quantity,
                    cost_pence=int(cost),
                )
            )
        return rows

    def add_treatment_record(self, data: dict[str, Any]) -> TreatmentRecord:
        """Bill a treatment: total is the base price plus materials, split by the
        definition's doctor percentage. The patient's last visit moves forward
        to the treatment date."""
        patient = self._reference(Patient, "patient", data["patient_id"])
        self._reference(Dentist, "dentist", data.get("dentist_id"))
        definition = self._reference(
            TreatmentDefinition, "treatment definition", data["treatment_definition_id"]
        )
        items = self._record_items(list(data.get("inventory_items_used") or []))
        total = definition.base_price_pence + sum(item.cost_pence for item in items)
        doctor_share, clinic_share = split_treatment_cost(total, definition.doctor_percentage)
        record = TreatmentRecord(
            owner_user_id=self.owner.id,
            patient_id=patient.id,
            dentist_id=data.get("dentist_id"),
            treatment_definition_id=definition.id,
            treatment_date=data["treatment_date"],
            notes=data.get("notes"),
            total_treatment_cost_pence=total,
            doctor_share_pence=doctor_share,
            clinic_share_pence=clinic_share,
        )
        record.inventory_items_used = items
        with self._transaction("treatment_record.create"):
            self.db.add(record)
            if patient.last_visit is None or patient.last_visit < record.treatment_date:
                patient.last_visit = record.treatment_date
            self.db.flush()
            self._audit("treatment_record.create", "treatment_record", record)
        self.db.refresh(record)
        return record

    def update_treatment_record(self, record_id: int, changes: dict[str, Any]) -> TreatmentRecord:
        record = self.get_treatment_record(record_id)
        changes = dict(changes)
        if "dentist_id" in changes:
            self._reference(Dentist, "dentist", changes["dentist_id"])
        total = changes.get("total_treatment_cost_pence", record.total_treatment_cost_pence)
        doctor = changes.get("doctor_share_pence", record.doctor_share_pence)
        if "clinic_share_pence" not in changes and (
            "total_treatment_cost_pence" in changes or "doctor_share_pence" in changes
        ):
            changes["clinic_share_pence"] = total - doctor
        clinic = changes.get("clinic_share_pence", record.clinic_share_pence)
        if doctor < 0 or clinic < 0 or doctor + clinic != total:
            raise ClinicStoreError("Doctor and clinic shares must add up to the treatment total")
        return self._apply("treatment_record", record, changes)

    # -- payments -----------------------------------------------------------

    def list_payments(self, *, patient_id: int | None = None) -> list[Payment]:
        stmt = self._scoped(Payment).order_by(Payment.date.asc(), Payment.id.asc())
        if patient_id is not None:
            stmt = stmt.where(Payment.patient_id == patient_id)
        return self._list(stmt)

    def get_payment(self, payment_id: int) -> Payment:
        return self._get(Payment, "payment", payment_id)

    def add_payment(self, data: dict[str, Any]) -> Payment:
        self._reference(Patient, "patient", data["patient_id"])
        if data["amount_pence"] <= 0:
            raise ClinicStoreError("Payment amount must be positive")
        return self._create("payment", Payment(owner_user_id=self.owner.id, **data))

    def update_payment(self, payment_id: int, changes: dict[str, Any]) -> Payment:
        payment = self.get_payment(payment_id)
        if "patient_id" in changes:
            self._reference(Patient, "patient", changes["patient_id"])
        if "amount_pence" in changes and changes["amount_pence"] <= 0:
            raise ClinicStoreError("Payment amount must be positive")
        return self._apply("payment", payment, changes)

    # -- expenses -----------------------------------------------------------

    def list_expenses(self, *, supplier_id: int | None = None) -> list[Expense]:
        stmt = self._scoped(Expense).order_by(Expense.date.asc(), Expense.id.asc())
        if supplier_id is not None:
            stmt = stmt.where(Expense.supplier_id == supplier_id)
        return self._list(stmt)

    def get_expense(self, expense_id: int) -> Expense:
        return self._get(Expense, "expense", expense_id)

    def add_expense(self, data: dict[str, Any]) -> Expense:
        if data["amount_pence"] <= 0:
            raise ClinicStoreError("Expense amount must be positive")
        self._reference(Supplier, "supplier", data.get("supplier_id"))
        invoice_id = data.get("supplier_invoice_id")
        if invoice_id is None:
            return self._create("expense", Expense(owner_user_id=self.owner.id, **data))
        invoice = self._reference(SupplierInvoice, "supplier invoice", invoice_id)
        if data.get("supplier_id") is not None and data["supplier_id"] != invoice.supplier_id:
            raise ClinicStoreError("Expense supplier does not match the supplier invoice")
        self._check_invoice_payment(invoice, data["amount_pence"])
        fields = dict(data)
        fields["supplier_id"] = invoice.supplier_id
        expense = Expense(owner_user_id=self.owner.id, **fields)
        with self._transaction("expense.create"):
            self._link_invoice_payment(invoice, expense)
        self.db.refresh(expense)
        return expense

    def update_expense(self, expense_id: int, changes: dict[str, Any]) -> Expense:
        expense = self.get_expense(expense_id)
        if "amount_pence" in changes and changes["amount_pence"] <= 0:
            raise ClinicStoreError("Expense amount must be positive")
        if "supplier_id" in changes:
            self._reference(Supplier, "supplier", changes["supplier_id"])
        if "supplier_invoice_id" in changes and changes["supplier_invoice_id"] != expense.supplier_invoice_id:
            raise ClinicStoreError("An expense cannot be moved between supplier invoices")
        linked = None
        if expense.supplier_invoice_id is not None:
            invoice = self._get(SupplierInvoice, "supplier_invoice", expense.supplier_invoice_id)
            if changes.get("supplier_id", invoice.supplier_id) != invoice.supplier_id:
                raise ClinicStoreError("Expense supplier does not match the supplier invoice")
            linked = next((p for p in invoice.payments if p.expense_id == expense.id), None)
            if linked is not None and "amount_pence" in changes:
                other_paid = invoice.paid_pence - linked.amount_pence
                if other_paid + changes["amount_pence"] > invoice.amount_pence:
                    raise ClinicStoreError("Payment exceeds the outstanding invoice balance")
        before = snapshot_model(expense)
        with self._transaction("expense.update"):
            for field, value in changes.items():
                setattr(expense, field, value)
            if linked is not None:
                linked.amount_pence = expense.amount_pence
                linked.date = expense.date
                invoice = linked.invoice
                invoice.status = invoice_status_for(invoice.amount_pence, invoice.paid_pence)
            self.db.flush()
            self._audit("expense.update", "expense", expense, before=before)
        self.db.refresh(expense)
        return expense

    # -- inventory ----------------------------------------------------------

    def list_inventory_items(self, *, supplier_id: int | None = None) -> list[InventoryItem]:
        stmt = self._scoped(InventoryItem).order_by(InventoryItem.name.asc(), InventoryItem.id.asc())
        if supplier_id is not None:
            stmt = stmt.where(InventoryItem.supplier_id == supplier_id)
        return self._list(stmt)

    def get_inventory_item(self, item_id: int) -> InventoryItem:
        return self._get(InventoryItem, "inventory_item", item_id)

    def add_inventory_item(self, data: dict[str, Any]) -> InventoryItem:
        self._reference(Supplier, "supplier", data.get("supplier_id"))
        return self._create("inventory_item", InventoryItem(owner_user_id=self.owner.id, **data))

    def update_inventory_item(self, item_id: int, changes: dict[str, Any]) -> InventoryItem:
        item = self.get_inventory_item(item_id)
        if "supplier_id" in changes:
            self._reference(Supplier, "supplier", changes["supplier_id"])
        return self._apply("inventory_item", item, changes)

    # -- suppliers ----------------------------------------------------------

    def list_suppliers(self, *, supplier_type: SupplierType | None = None) -> list[Supplier]:
        stmt = self._scoped(Supplier).order_by(Supplier.name.asc(), Supplier.id.asc())
        if supplier_type is not None:
            stmt = stmt.where(Supplier.type == supplier_type)
        return self._list(stmt)

    def get_supplier(self, supplier_id: int) -> Supplier:
        return self._get(Supplier, "supplier", supplier_id)

    def add_supplier(self, data: dict[str, Any]) -> Supplier:
        return self._create("supplier", Supplier(owner_user_id=self.owner.id, **data))

    def update_supplier(self, supplier_id: int, changes: dict[str, Any]) -> Supplier:
        return self._apply("supplier", self.get_supplier(supplier_id), changes)

    # -- supplier invoices --------------------------------------------------

    def list_supplier_invoices(self, *, supplier_id: int | None = None) -> list[SupplierInvoice]:
        stmt = self._scoped(SupplierInvoice).order_by(
            SupplierInvoice.invoice_date.asc(), SupplierInvoice.id.asc()
        )
        if supplier_id is not None:
            stmt = stmt.where(SupplierInvoice.supplier_id == supplier_id)
        return self._list(stmt)

    def get_supplier_invoice(self, invoice_id: int) -> SupplierInvoice:
        return self._get(SupplierInvoice, "supplier_invoice", invoice_id)

    def add_supplier_invoice(self, data: dict[str, Any]) -> SupplierInvoice:
        self._reference(Supplier, "supplier", data["supplier_id"])
        fields = {key: value for key, value in data.items() if key != "items"}
        invoice = SupplierInvoice(owner_user_id=self.owner.id, **fields)
        invoice.items = [SupplierInvoiceItem(**item) for item in data.get("items") or []]
        invoice.status = invoice_status_for(invoice.amount_pence, 0)
        return self._create("supplier_invoice", invoice)

    def update_supplier_invoice(self, invoice_id: int, changes: dict[str, Any]) -> SupplierInvoice:
        invoice = self.get_supplier_invoice(invoice_id)
        changes = dict(changes)
        if "supplier_id" in changes:
            self._reference(Supplier, "supplier", changes["supplier_id"])
            if invoice.payments and changes["supplier_id"] != invoice.supplier_id:
                raise ClinicStoreError("A supplier invoice with payments cannot change supplier")
        amount = changes.get("amount_pence", invoice.amount_pence)
        if amount < invoice.paid_pence:
            raise ClinicStoreError("Invoice amount cannot be less than the amount already paid")
        items = changes.pop("items", None)
        before = snapshot_model(invoice)
        with self._transaction("supplier_invoice.update"):
            for field, value in changes.items():
                setattr(invoice, field, value)
            if items is not None:
                invoice.items = [SupplierInvoiceItem(**item) for item in items]
            invoice.status = invoice_status_for(invoice.amount_pence, invoice.paid_pence)
            self.db.flush()
            self._audit("supplier_invoice.update", "supplier_invoice", invoice, before=before)
        self.db.refresh(invoice)
        return invoice

    @staticmethod
    def _check_invoice_payment(invoice: SupplierInvoice, amount_pence: int) -> None:
        if amount_pence <= 0:
            raise ClinicStoreError("Payment amount must be positive")
        if amount_pence > invoice.balance_pence:
            raise ClinicStoreError("Payment exceeds the outstanding invoice balance")

    def _link_invoice_payment(self, invoice: SupplierInvoice, expense: Expense) -> None:
        before = snapshot_model(invoice)
        self.db.add(expense)
        self.db.flush()
        invoice.payments.append(
            SupplierInvoicePayment(
                expense_id=expense.id,
                amount_pence=expense.amount_pence,
                date=expense.date,
            )
        )
        invoice.status = invoice_status_for(invoice.amount_pence, invoice.paid_pence)
        self.db.flush()
        self._audit("expense.create", "expense", expense)
        self._audit("supplier_invoice.payment", "supplier_invoice", invoice, before=before)

    def record_supplier_payment(
        self,
        invoice_id: int,
        amount_pence: int,
        paid_on: date | None = None,
        description: str | None = None,
    ) -> tuple[Expense, SupplierInvoice]:
        """Pay a supplier invoice: a SUPPLIES expense plus the invoice payment
        entry, written together."""
        invoice = self.get_supplier_invoice(invoice_id)
        self._check_invoice_payment(invoice, amount_pence)
        label = invoice.invoice_number or str(invoice.id)
        expense = Expense(
            owner_user_id=self.owner.id,
            date=paid_on or clinic_today(),
            description=description or f"Payment for supplier invoice {label}",
            amount_pence=amount_pence,
            category=ExpenseCategory.supplies,
            supplier_id=invoice.supplier_id,
            supplier_invoice_id=invoice.id,
        )
        with self._transaction("supplier_invoice.payment"):
            self._link_invoice_payment(invoice, expense)
        self.db.refresh(expense)
        self.db.refresh(invoice)
        logger.info(
            "Supplier invoice %s paid %s (balance now %s)",
            invoice.id,
            amount_pence,
            invoice.balance_pence,
        )
        return expense, invoice

    def pay_remaining(self, invoice_id: int) -> tuple[Expense, SupplierInvoice] | None:
        invoice = self.get_supplier_invoice(invoice_id)
        balance = invoice.balance_pence
        if balance <= 0:
            return None
        return self.record_supplier_payment(invoice.id, balance, clinic_today())

    # -- lab cases ----------------------------------------------------------

    def list_lab_cases(
        self, *, status: LabCaseStatus | None = None, patient_id: int | None = None
    ) -> list[LabCase]:
        stmt = self._scoped(LabCase).order_by(LabCase.due_date.asc(), LabCase.id.asc())
        if status is not None:
            stmt = stmt.where(LabCase.status == status)
        if patient_id is not None:
            stmt = stmt.where(LabCase.patient_id == patient_id)
        return self._list(stmt)

    def get_lab_case(self, case_id: int) -> LabCase:
        return self._get(LabCase, "lab_case", case_id)

    def _check_lab(self, lab_id: int) -> None:
        lab = self._reference(Supplier, "lab", lab_id)
        if lab.type != SupplierType.dental_lab:
            raise ClinicStoreError(f"Supplier {lab_id} is not a dental lab")

    def add_lab_case(self, data: dict[str, Any]) -> LabCase:
        self._reference(Patient, "patient", data["patient_id"])
        self._check_lab(data["lab_id"])
        return self._create("lab_case", LabCase(owner_user_id=self.owner.id, **data))

    def update_lab_case(self, case_id: int, changes: dict[str, Any]) -> LabCase:
        case = self.get_lab_case(case_id)
        changes = dict(changes)
        if "patient_id" in changes:
            self._reference(Patient, "patient", changes["patient_id"])
        if "lab_id" in changes:
            self._check_lab(changes["lab_id"])
        target = changes.get("status")
        if target is not None:
            target = LabCaseStatus(target)
            ensure_lab_case_transition(case.status, target)
            if target == LabCaseStatus.sent_to_lab and not changes.get("sent_date") and case.sent_date is None:
                changes["sent_date"] = clinic_today()
            if target == LabCaseStatus.received_from_lab and not changes.get("return_date") and case.return_date is None:
                changes["return_date"] = clinic_today()
        return self._apply("lab_case", case, changes)


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_times(data: dict[str, Any]) -> dict[str, Any]:
    data = dict(data)
    for field in ("start_time", "end_time"):
        if data.get(field) is not None:
            data[field] = _utc(data[field])
    return data
