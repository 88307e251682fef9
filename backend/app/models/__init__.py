from app.models.base import Base
from app.models.user import Role, User
from app.models.audit_log import AuditLog
from app.models.patient import Gender, Patient
from app.models.dentist import Dentist
from app.models.appointment import Appointment, AppointmentStatus, ReminderTime
from app.models.treatment import TreatmentDefinition, TreatmentRecord, TreatmentRecordItem
from app.models.finance import Expense, ExpenseCategory, Payment, PaymentMethod
from app.models.inventory import InventoryItem
from app.models.supplier import (
    Supplier,
    SupplierInvoice,
    SupplierInvoiceItem,
    SupplierInvoicePayment,
    SupplierInvoiceStatus,
    SupplierType,
)
from app.models.lab_case import LabCase, LabCaseStatus

__all__ = [
    "Base",
    "Role",
    "User",
    "AuditLog",
    "Gender",
    "Patient",
    "Dentist",
    "Appointment",
    "AppointmentStatus",
    "ReminderTime",
    "TreatmentDefinition",
    "TreatmentRecord",
    "TreatmentRecordItem",
    "Expense",
    "ExpenseCategory",
    "Payment",
    "PaymentMethod",
    "InventoryItem",
    "Supplier",
    "SupplierInvoice",
    "SupplierInvoiceItem",
    "SupplierInvoicePayment",
    "SupplierInvoiceStatus",
    "SupplierType",
    "LabCase",
    "LabCaseStatus",
]
