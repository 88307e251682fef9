from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class LabelValue(BaseModel):
    label: str
    value: int


class DoctorPerformanceOut(BaseModel):
    dentist_id: int
    name: str
    color: str
    earnings: int
    treatment_count: int
    percentage: float


class PendingLabCaseOut(BaseModel):
    id: int
    patient_name: str
    case_type: str
    due_date: date
    status: str


class LowStockItemOut(BaseModel):
    id: int
    name: str
    current_stock: int
    threshold: int
    supplier_name: Optional[str] = None


class OverdueSupplierInvoiceOut(BaseModel):
    id: int
    supplier_name: str
    invoice_number: Optional[str] = None
    due_date: date
    outstanding_balance: int


class DashboardOut(BaseModel):
    date: date
    todays_appointments: int
    todays_revenue: int
    month_revenue: int
    month_expenses: int
    month_net_profit: int
    month_clinic_profit: int
    outstanding_balance: int
    new_patients_this_month: int
    upcoming_week: list[LabelValue]
    pending_lab_cases: list[PendingLabCaseOut]
    low_stock_items: list[LowStockItemOut]
    doctor_performance: list[DoctorPerformanceOut]
    overdue_supplier_invoices: list[OverdueSupplierInvoiceOut]


class DailySummaryOut(BaseModel):
    date: date
    revenue: int
    expenses: int
    doctor_shares: int
    doctor_percentage: float
    net_profit: int
    clinic_profit: int
    pending_payments: int
    overdue_charges: int
    payments_count: int
    unique_patients: int
    appointments_count: int
    revenue_trend: list[LabelValue]
    expense_breakdown: list[LabelValue]
    doctor_performance: list[DoctorPerformanceOut]


class FinancialSummaryOut(BaseModel):
    start: date
    end: date
    basis: str
    total_income: int
    total_expenses: int
    net_profit: int
    doctor_shares: int
    clinic_profit: int
    expenses_by_category: list[LabelValue]
    income_by_treatment: list[LabelValue]


class TreatmentPerformanceOut(BaseModel):
    total_treatments: int
    total_revenue: int
    most_profitable: Optional[LabelValue] = None
    top_by_revenue: list[LabelValue]
    top_by_count: list[LabelValue]


class AppointmentOverviewOut(BaseModel):
    total_appointments: int
    completed: int
    cancelled: int
    completion_rate: float
    by_status: list[LabelValue]
    by_dentist: list[LabelValue]


class PatientStatisticsOut(BaseModel):
    total_patients: int
    new_patients: int
    gender: list[LabelValue]
    age: list[LabelValue]


class ExpiringItemOut(BaseModel):
    id: int
    name: str
    expiry_date: date


class InventoryReportOut(BaseModel):
    total_items: int
    total_stock_units: int
    total_stock_value: int
    low_stock: list[LowStockItemOut]
    expiring_soon: list[ExpiringItemOut]


class DentistReportOut(BaseModel):
    dentist_id: int
    name: str
    specialty: str
    treatment_count: int
    patients_treated: int
    total_revenue: int
    total_earnings: int
    clinic_share: int
    last_treatment_date: Optional[date] = None
    income_by_treatment: list[LabelValue]


class LabCaseTotalsOut(BaseModel):
    total: int
    pending: int
    total_cost: int


class SupplierReportOut(BaseModel):
    supplier_id: int
    name: str
    type: str
    inventory_items: int
    inventory_value: int
    total_expenses: int
    invoice_count: int
    total_billed: int
    total_paid: int
    outstanding_balance: int
    lab_cases: Optional[LabCaseTotalsOut] = None


class AlertOut(BaseModel):
    kind: str
    entity_id: int
    title: str
    due_at: Optional[datetime] = None
    detail: Optional[dict] = None
