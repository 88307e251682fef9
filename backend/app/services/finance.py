from __future__ import annotations

import enum
from collections import defaultdict
from datetime import date, datetime, time, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, NamedTuple, Sequence

from app.core.settings import settings
from app.models.appointment import AppointmentStatus
from app.models.finance import PaymentMethod
from app.models.patient import Gender
from app.services.snapshot import (
    AppointmentView,
    DentistView,
    ExpenseView,
    PatientView,
    PaymentView,
    SupplierInvoiceView,
    TreatmentDefinitionView,
    TreatmentRecordView,
)
from app.services.transitions import invoice_status_for

UNKNOWN_TREATMENT = "Unknown treatment"
UNKNOWN_DENTIST = "Unknown dentist"
AGE_BANDS: tuple[str, ...] = ("0-18", "19-35", "36-55", "56+")
END_OF_DAY = time(23, 59, 59, 999000)


class IncomeBasis(str, enum.Enum):
    treatments = "treatments"
    payments = "payments"


class DateRange(NamedTuple):
    start: datetime
    end: datetime


def _default_tz() -> tzinfo:
    return settings.tz


def parse_day(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def date_range(start: date | str, end: date | str, tz: tzinfo | None = None) -> DateRange:
    """Inclusive range from local 00:00:00.000 of start to 23:59:59.999 of end."""
    tz = tz or _default_tz()
    start_day = parse_day(start)
    end_day = parse_day(end)
    if start_day is None or end_day is None:
        raise ValueError("start and end must be ISO calendar dates")
    return DateRange(
        start=datetime.combine(start_day, time.min, tzinfo=tz),
        end=datetime.combine(end_day, END_OF_DAY, tzinfo=tz),
    )


def _moment(value: Any, tz: tzinfo) -> datetime | None:
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) <= 10:
                value = date.fromisoformat(text)
            else:
                value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=tz)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz)
    return None


def in_range(value: Any, rng: DateRange | None) -> bool:
    if rng is None:
        return True
    moment = _moment(value, rng.start.tzinfo)
    if moment is None:
        return False
    return rng.start <= moment <= rng.end


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_treatment_cost(total_pence: int, doctor_percentage: Decimal | str | float) -> tuple[int, int]:
    doctor_share = round_half_up(Decimal(total_pence) * Decimal(str(doctor_percentage)))
    return doctor_share, total_pence - doctor_share


def percentage_of(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def _labelled(totals: dict[str, int]) -> list[dict[str, Any]]:
    rows = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [{"label": label, "value": value} for label, value in rows]


def balance_state(outstanding_pence: int) -> str:
    if outstanding_pence > 0:
        return "owes"
    if outstanding_pence < 0:
        return "overpaid"
    return "paid_in_full"


def patient_balance(
    patient_id: int,
    records: Iterable[TreatmentRecordView],
    payments: Iterable[PaymentView],
) -> dict[str, Any]:
    total_charges = sum(r.total_treatment_cost_pence for r in records if r.patient_id == patient_id)
    total_paid = sum(p.amount_pence for p in payments if p.patient_id == patient_id)
    outstanding = total_charges - total_paid
    return {
        "patient_id": patient_id,
        "total_charges": total_charges,
        "total_paid": total_paid,
        "outstanding_balance": outstanding,
        "balance_state": balance_state(outstanding),
    }


def doctor_earnings(
    dentist_id: int,
    records: Iterable[TreatmentRecordView],
    rng: DateRange | None = None,
) -> int:
    return sum(
        r.doctor_share_pence
        for r in records
        if r.dentist_id == dentist_id and in_range(r.treatment_date, rng)
    )


def daily_doctor_performance(
    day: date,
    records: Iterable[TreatmentRecordView],
    dentists: Iterable[DentistView],
    tz: tzinfo | None = None,
) -> list[dict[str, Any]]:
    rng = date_range(day, day, tz)
    by_id = {d.id: d for d in dentists}
    earnings: dict[int, int] = defaultdict(int)
    counts: dict[int, int] = defaultdict(int)
    for record in records:
        if record.dentist_id not in by_id or not in_range(record.treatment_date, rng):
            continue
        earnings[record.dentist_id] += record.doctor_share_pence
        counts[record.dentist_id] += 1
    total = sum(earnings.values())
    rows = [
        {
            "dentist_id": dentist_id,
            "name": by_id[dentist_id].name,
            "color": by_id[dentist_id].color,
            "earnings": value,
            "treatment_count": counts[dentist_id],
            "percentage": percentage_of(value, total),
        }
        for dentist_id, value in earnings.items()
    ]
    return sorted(rows, key=lambda row: (-row["earnings"], row["name"]))


def supplier_invoice_balance(invoice: SupplierInvoiceView) -> dict[str, int]:
    total_paid = sum(p.amount_pence for p in invoice.payments)
    return {
        "total_billed": invoice.amount_pence,
        "total_paid": total_paid,
        "outstanding_balance": invoice.amount_pence - total_paid,
    }


def derive_invoice_status(invoice: SupplierInvoiceView):
    return invoice_status_for(invoice.amount_pence, sum(p.amount_pence for p in invoice.payments))


def income_payments(payments: Iterable[PaymentView]) -> list[PaymentView]:
    return [p for p in payments if p.method != PaymentMethod.discount]


def period_rollup(
    start: date | str,
    end: date | str,
    records: Sequence[TreatmentRecordView],
    expenses: Sequence[ExpenseView],
    payments: Sequence[PaymentView],
    basis: IncomeBasis = IncomeBasis.treatments,
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    """Income, expenses and profit for an inclusive calendar range.

    net_profit is income minus expenses. clinic_profit also takes off the
    doctor shares of the treatment records in the range.
    """
    rng = date_range(start, end, tz)
    period_records = [r for r in records if in_range(r.treatment_date, rng)]
    if basis == IncomeBasis.payments:
        total_income = sum(p.amount_pence for p in income_payments(payments) if in_range(p.date, rng))
    else:
        total_income = sum(r.total_treatment_cost_pence for r in period_records)
    total_expenses = sum(e.amount_pence for e in expenses if in_range(e.date, rng))
    doctor_shares = sum(r.doctor_share_pence for r in period_records)
    net_profit = total_income - total_expenses
    return {
        "start": rng.start.date().isoformat(),
        "end": rng.end.date().isoformat(),
        "basis": IncomeBasis(basis).value,
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net_profit": net_profit,
        "doctor_shares": doctor_shares,
        "clinic_profit": net_profit - doctor_shares,
    }


def expenses_by_category(
    expenses: Iterable[ExpenseView], rng: DateRange | None = None
) -> list[dict[str, Any]]:
    totals: dict[str, int] = defaultdict(int)
    for expense in expenses:
        if in_range(expense.date, rng):
            totals[expense.category.value] += expense.amount_pence
    return _labelled(totals)


def _definition_names(definitions: Iterable[TreatmentDefinitionView]) -> dict[int, str]:
    return {d.id: d.name for d in definitions}


def income_by_treatment(
    records: Iterable[TreatmentRecordView],
    definitions: Iterable[TreatmentDefinitionView],
    rng: DateRange | None = None,
) -> list[dict[str, Any]]:
    names = _definition_names(definitions)
    totals: dict[str, int] = defaultdict(int)
    for record in records:
        if in_range(record.treatment_date, rng):
            label = names.get(record.treatment_definition_id, UNKNOWN_TREATMENT)
            totals[label] += record.total_treatment_cost_pence
    return _labelled(totals)


def treatment_performance(
    records: Iterable[TreatmentRecordView],
    definitions: Iterable[TreatmentDefinitionView],
    rng: DateRange | None = None,
) -> dict[str, Any]:
    names = _definition_names(definitions)
    revenue: dict[str, int] = defaultdict(int)
    counts: dict[str, int] = defaultdict(int)
    for record in records:
        if not in_range(record.treatment_date, rng):
            continue
        label = names.get(record.treatment_definition_id, UNKNOWN_TREATMENT)
        revenue[label] += record.total_treatment_cost_pence
        counts[label] += 1
    by_revenue = _labelled(revenue)
    return {
        "total_treatments": sum(counts.values()),
        "total_revenue": sum(revenue.values()),
        "most_profitable": by_revenue[0] if by_revenue else None,
        "top_by_revenue": by_revenue[:5],
        "top_by_count": _labelled(counts)[:5],
    }


def age_in_years(dob: date, today: date) -> int:
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


def age_band(age: int) -> str:
    if age <= 18:
        return "0-18"
    if age <= 35:
        return "19-35"
    if age <= 55:
        return "36-55"
    return "56+"


def age_gender_distribution(
    patients: Iterable[PatientView],
    rng: DateRange | None,
    today: date,
) -> dict[str, Any]:
    visited = [p for p in patients if in_range(p.last_visit, rng)]
    genders = {gender.value: 0 for gender in Gender}
    ages = {band: 0 for band in AGE_BANDS}
    for patient in visited:
        genders[patient.gender.value] += 1
        if patient.dob is not None:
            ages[age_band(age_in_years(patient.dob, today))] += 1
    return {
        "total_patients": len(visited),
        "gender": [{"label": label, "value": value} for label, value in genders.items()],
        "age": [{"label": label, "value": value} for label, value in ages.items()],
    }


def outstanding_total(
    records: Sequence[TreatmentRecordView], payments: Sequence[PaymentView]
) -> int:
    patient_ids = {r.patient_id for r in records} | {p.patient_id for p in payments}
    total = 0
    for patient_id in patient_ids:
        balance = patient_balance(patient_id, records, payments)["outstanding_balance"]
        if balance > 0:
            total += balance
    return total


def pending_payments(
    as_of: date,
    records: Iterable[TreatmentRecordView],
    payments: Iterable[PaymentView],
) -> int:
    charged = sum(r.total_treatment_cost_pence for r in records if _on_or_before(r.treatment_date, as_of))
    paid = sum(p.amount_pence for p in payments if _on_or_before(p.date, as_of))
    return max(0, charged - paid)


def overdue_charges(
    as_of: date,
    records: Iterable[TreatmentRecordView],
    payments: Sequence[PaymentView],
    days: int = 30,
) -> int:
    paid_by_patient: dict[int, int] = defaultdict(int)
    for payment in payments:
        paid_by_patient[payment.patient_id] += payment.amount_pence
    total = 0
    for record in records:
        treated_on = parse_day(record.treatment_date)
        if treated_on is None or (as_of - treated_on).days <= days:
            continue
        if record.total_treatment_cost_pence > paid_by_patient[record.patient_id]:
            total += record.total_treatment_cost_pence
    return total


def _on_or_before(value: Any, as_of: date) -> bool:
    day = parse_day(value)
    return day is not None and day <= as_of


def _month_start(day: date, months_back: int) -> date:
    index = day.year * 12 + day.month - 1 - months_back
    return date(index // 12, index % 12 + 1, 1)


def monthly_revenue(
    payments: Iterable[PaymentView], months: int, today: date
) -> list[dict[str, Any]]:
    buckets = {
        _month_start(today, offset).strftime("%Y-%m"): 0 for offset in range(months - 1, -1, -1)
    }
    for payment in income_payments(payments):
        day = parse_day(payment.date)
        if day is None:
            continue
        key = day.strftime("%Y-%m")
        if key in buckets:
            buckets[key] += payment.amount_pence
    return [{"label": label, "value": value} for label, value in buckets.items()]


def appointment_overview(
    appointments: Iterable[AppointmentView],
    dentists: Iterable[DentistView],
    rng: DateRange | None = None,
) -> dict[str, Any]:
    names = {d.id: d.name for d in dentists}
    selected = [a for a in appointments if in_range(a.start_time, rng)]
    by_status = {status.value: 0 for status in AppointmentStatus}
    by_dentist: dict[str, int] = defaultdict(int)
    for appointment in selected:
        by_status[appointment.status.value] += 1
        by_dentist[names.get(appointment.dentist_id, UNKNOWN_DENTIST)] += 1
    completed = by_status[AppointmentStatus.completed.value]
    return {
        "total_appointments": len(selected),
        "completed": completed,
        "cancelled": by_status[AppointmentStatus.cancelled.value],
        "completion_rate": percentage_of(completed, len(selected)),
        "by_status": [{"label": label, "value": value} for label, value in by_status.items()],
        "by_dentist": _labelled(by_dentist),
    }


def first_treatment_dates(records: Iterable[TreatmentRecordView]) -> dict[int, date]:
    firsts: dict[int, date] = {}
    for record in records:
        day = parse_day(record.treatment_date)
        if day is None:
            continue
        current = firsts.get(record.patient_id)
        if current is None or day < current:
            firsts[record.patient_id] = day
    return firsts


def new_patients_in_period(
    patients: Iterable[PatientView],
    records: Iterable[TreatmentRecordView],
    rng: DateRange,
) -> int:
    firsts = first_treatment_dates(records)
    return sum(1 for p in patients if p.id in firsts and in_range(firsts[p.id], rng))


def clinic_today(tz: tzinfo | None = None) -> date:
    return datetime.now(tz or _default_tz()).date()
