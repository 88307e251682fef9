from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from app.core.settings import settings
from app.models.supplier import SupplierInvoiceStatus, SupplierType
from app.services import finance
from app.services.alerts import low_stock_items, stock_threshold
from app.services.dental_chart import chart_summary
from app.services.finance import IncomeBasis, date_range, in_range
from app.services.snapshot import ClinicSnapshot, DentistView, PatientView, SupplierView
from app.services.transitions import is_lab_case_pending

UNKNOWN_PATIENT = "Unknown patient"


def _tz(tz: tzinfo | None) -> tzinfo:
    return tz or settings.tz


def _month_bounds(day: date) -> tuple[date, date]:
    return day.replace(day=1), day.replace(day=monthrange(day.year, day.month)[1])


def _names(rows) -> dict[int, str]:
    return {row.id: row.name for row in rows}


def overdue_supplier_invoices(snapshot: ClinicSnapshot, today: date) -> list[dict[str, Any]]:
    suppliers = _names(snapshot.suppliers)
    rows = []
    for invoice in snapshot.supplier_invoices:
        if invoice.status == SupplierInvoiceStatus.paid or invoice.due_date is None:
            continue
        if invoice.due_date < today:
            balance = finance.supplier_invoice_balance(invoice)
            rows.append(
                {
                    "id": invoice.id,
                    "supplier_name": suppliers.get(invoice.supplier_id, "Unknown supplier"),
                    "invoice_number": invoice.invoice_number,
                    "due_date": invoice.due_date,
                    "outstanding_balance": balance["outstanding_balance"],
                }
            )
    return sorted(rows, key=lambda row: (row["due_date"], row["id"]))


def dashboard(
    snapshot: ClinicSnapshot,
    now: datetime,
    basis: IncomeBasis | None = None,
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    tz = _tz(tz)
    basis = IncomeBasis(basis or settings.default_income_basis)
    today = now.astimezone(tz).date()
    today_range = date_range(today, today, tz)
    month_start, month_end = _month_bounds(today)
    month = finance.period_rollup(
        month_start,
        month_end,
        snapshot.treatment_records,
        snapshot.expenses,
        snapshot.payments,
        basis,
        tz,
    )
    patients = _names(snapshot.patients)
    upcoming = []
    for offset in range(7):
        day = today + timedelta(days=offset)
        day_range = date_range(day, day, tz)
        upcoming.append(
            {
                "label": day.isoformat(),
                "value": sum(1 for a in snapshot.appointments if in_range(a.start_time, day_range)),
            }
        )
    pending_cases = sorted(
        (case for case in snapshot.lab_cases if is_lab_case_pending(case.status)),
        key=lambda case: (case.due_date, case.id),
    )[:5]
    return {
        "date": today,
        "todays_appointments": sum(
            1 for a in snapshot.appointments if in_range(a.start_time, today_range)
        ),
        "todays_revenue": sum(
            r.total_treatment_cost_pence
            for r in snapshot.treatment_records
            if in_range(r.treatment_date, today_range)
        ),
        "month_revenue": month["total_income"],
        "month_expenses": month["total_expenses"],
        "month_net_profit": month["net_profit"],
        "month_clinic_profit": month["clinic_profit"],
        "outstanding_balance": finance.outstanding_total(snapshot.treatment_records, snapshot.payments),
        "new_patients_this_month": finance.new_patients_in_period(
            snapshot.patients, snapshot.treatment_records, date_range(month_start, month_end, tz)
        ),
        "upcoming_week": upcoming,
        "pending_lab_cases": [
            {
                "id": case.id,
                "patient_name": patients.get(case.patient_id, UNKNOWN_PATIENT),
                "case_type": case.case_type,
                "due_date": case.due_date,
                "status": case.status.value,
            }
            for case in pending_cases
        ],
        "low_stock_items": [
            {
                "id": item.id,
                "name": item.name,
                "current_stock": item.current_stock,
                "threshold": stock_threshold(item),
            }
            for item in low_stock_items(snapshot.inventory_items)[:5]
        ],
        "doctor_performance": finance.daily_doctor_performance(
            today, snapshot.treatment_records, snapshot.dentists, tz
        ),
        "overdue_supplier_invoices": overdue_supplier_invoices(snapshot, today),
    }


def daily_summary(snapshot: ClinicSnapshot, day: date, tz: tzinfo | None = None) -> dict[str, Any]:
    """Cash-up view of one calendar day: money in from payments, money out
    from expenses and the doctor shares of that day's treatments."""
    tz = _tz(tz)
    rng = date_range(day, day, tz)
    payments = [p for p in finance.income_payments(snapshot.payments) if in_range(p.date, rng)]
    revenue = sum(p.amount_pence for p in payments)
    expenses = sum(e.amount_pence for e in snapshot.expenses if in_range(e.date, rng))
    doctor_shares = sum(
        r.doctor_share_pence for r in snapshot.treatment_records if in_range(r.treatment_date, rng)
    )
    net_profit = revenue - expenses
    trend = []
    for offset in range(6, -1, -1):
        trend_day = day - timedelta(days=offset)
        trend_range = date_range(trend_day, trend_day, tz)
        trend.append(
            {
                "label": trend_day.isoformat(),
                "value": sum(
                    p.amount_pence
                    for p in finance.income_payments(snapshot.payments)
                    if in_range(p.date, trend_range)
                ),
            }
        )
    return {
        "date": day,
        "revenue": revenue,
        "expenses": expenses,
        "doctor_shares": doctor_shares,
        "doctor_percentage": finance.percentage_of(doctor_shares, revenue),
        "net_profit": net_profit,
        "clinic_profit": net_profit - doctor_shares,
        "pending_payments": finance.pending_payments(day, snapshot.treatment_records, snapshot.payments),
        "overdue_charges": finance.overdue_charges(day, snapshot.treatment_records, snapshot.payments),
        "payments_count": len(payments),
        "unique_patients": len({p.patient_id for p in payments}),
        "appointments_count": sum(1 for a in snapshot.appointments if in_range(a.start_time, rng)),
        "revenue_trend": trend,
        "expense_breakdown": finance.expenses_by_category(snapshot.expenses, rng),
        "doctor_performance": finance.daily_doctor_performance(
            day, snapshot.treatment_records, snapshot.dentists, tz
        ),
    }


def financial_summary(
    snapshot: ClinicSnapshot,
    start: date,
    end: date,
    basis: IncomeBasis | None = None,
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    tz = _tz(tz)
    basis = IncomeBasis(basis or settings.default_income_basis)
    rng = date_range(start, end, tz)
    rollup = finance.period_rollup(
        start, end, snapshot.treatment_records, snapshot.expenses, snapshot.payments, basis, tz
    )
    return {
        **rollup,
        "expenses_by_category": finance.expenses_by_category(snapshot.expenses, rng),
        "income_by_treatment": finance.income_by_treatment(
            snapshot.treatment_records, snapshot.treatment_definitions, rng
        ),
    }


def treatment_performance(
    snapshot: ClinicSnapshot, start: date, end: date, tz: tzinfo | None = None
) -> dict[str, Any]:
    rng = date_range(start, end, _tz(tz))
    return finance.treatment_performance(snapshot.treatment_records, snapshot.treatment_definitions, rng)


def appointment_overview(
    snapshot: ClinicSnapshot, start: date, end: date, tz: tzinfo | None = None
) -> dict[str, Any]:
    rng = date_range(start, end, _tz(tz))
    return finance.appointment_overview(snapshot.appointments, snapshot.dentists, rng)


def patient_statistics(
    snapshot: ClinicSnapshot, start: date, end: date, today: date, tz: tzinfo | None = None
) -> dict[str, Any]:
    rng = date_range(start, end, _tz(tz))
    stats = finance.age_gender_distribution(snapshot.patients, rng, today)
    stats["new_patients"] = finance.new_patients_in_period(
        snapshot.patients, snapshot.treatment_records, rng
    )
    return stats


def inventory_report(
    snapshot: ClinicSnapshot,
    today: date,
    threshold: int | None = None,
    expiry_window_days: int = 30,
) -> dict[str, Any]:
    suppliers = _names(snapshot.suppliers)
    items = snapshot.inventory_items
    expiring = [
        item
        for item in items
        if item.expiry_date is not None and item.expiry_date <= today + timedelta(days=expiry_window_days)
    ]
    return {
        "total_items": len(items),
        "total_stock_units": sum(item.current_stock for item in items),
        "total_stock_value": sum(item.current_stock * item.unit_cost_pence for item in items),
        "low_stock": [
            {
                "id": item.id,
                "name": item.name,
                "supplier_name": suppliers.get(item.supplier_id) if item.supplier_id else None,
                "current_stock": item.current_stock,
                "threshold": threshold if threshold is not None else stock_threshold(item),
            }
            for item in low_stock_items(items, threshold)
        ],
        "expiring_soon": [
            {"id": item.id, "name": item.name, "expiry_date": item.expiry_date}
            for item in sorted(expiring, key=lambda item: (item.expiry_date, item.id))
        ],
    }


def monthly_revenue(snapshot: ClinicSnapshot, months: int, today: date) -> list[dict[str, Any]]:
    return finance.monthly_revenue(snapshot.payments, months, today)


def patient_balances(snapshot: ClinicSnapshot) -> list[dict[str, Any]]:
    rows = []
    for patient in snapshot.patients:
        balance = finance.patient_balance(patient.id, snapshot.treatment_records, snapshot.payments)
        rows.append({**balance, "patient_name": patient.name})
    return sorted(rows, key=lambda row: (-row["outstanding_balance"], row["patient_name"]))


def patient_statement(snapshot: ClinicSnapshot, patient: PatientView) -> dict[str, Any]:
    definitions = _names(snapshot.treatment_definitions)
    dentists = _names(snapshot.dentists)
    records = sorted(
        (r for r in snapshot.treatment_records if r.patient_id == patient.id),
        key=lambda r: (r.treatment_date, r.id),
    )
    payments = sorted(
        (p for p in snapshot.payments if p.patient_id == patient.id),
        key=lambda p: (p.date, p.id),
    )
    return {
        "patient_id": patient.id,
        "patient_name": patient.name,
        "phone": patient.phone,
        "email": patient.email,
        "last_visit": patient.last_visit,
        "balance": finance.patient_balance(patient.id, records, payments),
        "treatments": [
            {
                "id": r.id,
                "date": r.treatment_date,
                "treatment_name": definitions.get(r.treatment_definition_id, finance.UNKNOWN_TREATMENT),
                "dentist_name": dentists.get(r.dentist_id, finance.UNKNOWN_DENTIST),
                "total_cost": r.total_treatment_cost_pence,
                "notes": r.notes,
            }
            for r in records
        ],
        "payments": [
            {"id": p.id, "date": p.date, "amount": p.amount_pence, "method": p.method.value, "notes": p.notes}
            for p in payments
        ],
        "chart_summary": chart_summary(patient.dental_chart),
        "lab_cases": [
            {"id": case.id, "case_type": case.case_type, "due_date": case.due_date, "status": case.status.value}
            for case in snapshot.lab_cases
            if case.patient_id == patient.id
        ],
    }


def dentist_report(
    snapshot: ClinicSnapshot,
    dentist: DentistView,
    start: date | None = None,
    end: date | None = None,
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    if (start is None) != (end is None):
        raise ValueError("start and end must be given together")
    rng = date_range(start, end, _tz(tz)) if start is not None else None
    records = [
        r for r in snapshot.treatment_records if r.dentist_id == dentist.id and in_range(r.treatment_date, rng)
    ]
    last = max((r.treatment_date for r in records), default=None)
    return {
        "dentist_id": dentist.id,
        "name": dentist.name,
        "specialty": dentist.specialty,
        "treatment_count": len(records),
        "patients_treated": len({r.patient_id for r in records}),
        "total_revenue": sum(r.total_treatment_cost_pence for r in records),
        "total_earnings": finance.doctor_earnings(dentist.id, records),
        "clinic_share": sum(r.clinic_share_pence for r in records),
        "last_treatment_date": last,
        "income_by_treatment": finance.income_by_treatment(records, snapshot.treatment_definitions),
    }


def dentist_reports(
    snapshot: ClinicSnapshot,
    start: date | None = None,
    end: date | None = None,
    tz: tzinfo | None = None,
) -> list[dict[str, Any]]:
    rows = [dentist_report(snapshot, dentist, start, end, tz) for dentist in snapshot.dentists]
    return sorted(rows, key=lambda row: (-row["total_earnings"], row["name"]))


def supplier_report(snapshot: ClinicSnapshot, supplier: SupplierView) -> dict[str, Any]:
    items = [item for item in snapshot.inventory_items if item.supplier_id == supplier.id]
    invoices = [invoice for invoice in snapshot.supplier_invoices if invoice.supplier_id == supplier.id]
    balances = [finance.supplier_invoice_balance(invoice) for invoice in invoices]
    report = {
        "supplier_id": supplier.id,
        "name": supplier.name,
        "type": supplier.type.value,
        "inventory_items": len(items),
        "inventory_value": sum(item.current_stock * item.unit_cost_pence for item in items),
        "total_expenses": sum(e.amount_pence for e in snapshot.expenses if e.supplier_id == supplier.id),
        "invoice_count": len(invoices),
        "total_billed": sum(b["total_billed"] for b in balances),
        "total_paid": sum(b["total_paid"] for b in balances),
        "outstanding_balance": sum(b["outstanding_balance"] for b in balances),
        "lab_cases": None,
    }
    if supplier.type == SupplierType.dental_lab:
        cases = [case for case in snapshot.lab_cases if case.lab_id == supplier.id]
        report["lab_cases"] = {
            "total": len(cases),
            "pending": sum(1 for case in cases if is_lab_case_pending(case.status)),
            "total_cost": sum(case.lab_cost_pence for case in cases),
        }
    return report


def supplier_reports(snapshot: ClinicSnapshot) -> list[dict[str, Any]]:
    return [supplier_report(snapshot, supplier) for supplier in snapshot.suppliers]

