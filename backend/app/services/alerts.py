from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Iterator
from urllib.parse import quote

from app.core.settings import settings
from app.models.appointment import ReminderTime
from app.services.snapshot import (
    AppointmentView,
    ClinicSnapshot,
    InventoryItemView,
    LabCaseView,
    PatientView,
)
from app.services.transitions import TERMINAL_APPOINTMENT_STATUSES, is_lab_case_pending

REMINDER_THRESHOLDS: dict[ReminderTime, timedelta] = {
    ReminderTime.one_hour_before: timedelta(hours=1),
    ReminderTime.two_hours_before: timedelta(hours=2),
    ReminderTime.one_day_before: timedelta(hours=24),
}


@dataclass(frozen=True)
class Alert:
    kind: str
    entity_id: int
    title: str
    due_at: datetime | None = None
    detail: dict | None = None


def _aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def is_reminder_due(appointment: AppointmentView, now: datetime) -> bool:
    if appointment.reminder_sent or appointment.status in TERMINAL_APPOINTMENT_STATUSES:
        return False
    threshold = REMINDER_THRESHOLDS.get(appointment.reminder_time)
    if threshold is None:
        return False
    lead = _aware(appointment.start_time) - _aware(now)
    return timedelta(0) <= lead <= threshold


def appointment_reminders(
    now: datetime, appointments: tuple[AppointmentView, ...] | list[AppointmentView]
) -> list[AppointmentView]:
    due = [a for a in appointments if is_reminder_due(a, now)]
    return sorted(due, key=lambda a: a.start_time)


def stock_threshold(item: InventoryItemView, default: int | None = None) -> int:
    if item.min_stock_level is not None:
        return item.min_stock_level
    return settings.low_stock_threshold if default is None else default


def low_stock_items(
    items: tuple[InventoryItemView, ...] | list[InventoryItemView],
    threshold: int | None = None,
) -> list[InventoryItemView]:
    """Items at or below their reorder level, lowest stock first.

    An explicit threshold applies to every item; otherwise each item's
    min_stock_level wins over the clinic default.
    """
    if threshold is not None:
        low = [item for item in items if item.current_stock <= threshold]
    else:
        low = [item for item in items if item.current_stock <= stock_threshold(item)]
    return sorted(low, key=lambda item: (item.current_stock, item.name))


def days_until_due(case: LabCaseView, now: datetime, tz: tzinfo | None = None) -> float:
    tz = tz or settings.tz
    due_at = datetime.combine(case.due_date, time.min, tzinfo=tz)
    return (due_at - _aware(now)) / timedelta(days=1)


def lab_cases_due(
    now: datetime,
    cases: tuple[LabCaseView, ...] | list[LabCaseView],
    threshold_days: int | None = None,
    tz: tzinfo | None = None,
) -> list[LabCaseView]:
    limit = settings.lab_case_due_threshold_days if threshold_days is None else threshold_days
    due = [
        case
        for case in cases
        if is_lab_case_pending(case.status) and days_until_due(case, now, tz) <= limit
    ]
    return sorted(due, key=lambda case: (case.due_date, case.id))


def iter_alerts(
    now: datetime,
    snapshot: ClinicSnapshot,
    *,
    low_stock_threshold: int | None = None,
    lab_case_threshold_days: int | None = None,
) -> Iterator[Alert]:
    patients = {p.id: p.name for p in snapshot.patients}
    for appointment in appointment_reminders(now, snapshot.appointments):
        yield Alert(
            kind="appointment_reminder",
            entity_id=appointment.id,
            title=f"Reminder due for {patients.get(appointment.patient_id, 'Unknown patient')}",
            due_at=appointment.start_time,
            detail={"reminder_time": appointment.reminder_time.value},
        )
    for item in low_stock_items(snapshot.inventory_items, low_stock_threshold):
        yield Alert(
            kind="low_stock",
            entity_id=item.id,
            title=f"Low stock: {item.name}",
            detail={"current_stock": item.current_stock, "threshold": stock_threshold(item, low_stock_threshold)},
        )
    for case in lab_cases_due(now, snapshot.lab_cases, lab_case_threshold_days):
        yield Alert(
            kind="lab_case_due",
            entity_id=case.id,
            title=f"Lab case due: {case.case_type} for {patients.get(case.patient_id, 'Unknown patient')}",
            due_at=datetime.combine(case.due_date, time.min, tzinfo=settings.tz),
            detail={"status": case.status.value},
        )


def normalize_phone(phone: str, country_code: str | None = None) -> str:
    country_code = country_code or settings.reminder_country_code
    digits = re.sub(r"\D", "", phone or "")
    if phone.strip().startswith("+"):
        return digits
    if digits.startswith("0"):
        digits = digits[1:]
    return f"{country_code}{digits}"


def reminder_message(patient: PatientView, appointment: AppointmentView, clinic_name: str = "") -> str:
    start = _aware(appointment.start_time).astimezone(settings.tz)
    clinic = clinic_name or "the clinic"
    return (
        f"Hello {patient.name}, this is a reminder of your appointment at {clinic} "
        f"on {start:%Y-%m-%d} at {start:%H:%M}."
    )


def build_reminder_link(
    patient: PatientView,
    appointment: AppointmentView,
    clinic_name: str = "",
    country_code: str | None = None,
) -> str | None:
    if not patient.phone:
        return None
    number = normalize_phone(patient.phone, country_code)
    return f"https://wa.me/{number}?text={quote(reminder_message(patient, appointment, clinic_name))}"
