from __future__ import annotations

from app.models.appointment import AppointmentStatus
from app.models.lab_case import LabCaseStatus
from app.models.supplier import SupplierInvoiceStatus


class InvalidTransitionError(ValueError):
    def __init__(self, entity: str, current: str, target: str) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"Cannot move {entity} from {current} to {target}")


APPOINTMENT_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.scheduled: frozenset(
        {AppointmentStatus.confirmed, AppointmentStatus.completed, AppointmentStatus.cancelled}
    ),
    AppointmentStatus.confirmed: frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled}),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.cancelled: frozenset(),
}

LAB_CASE_TRANSITIONS: dict[LabCaseStatus, frozenset[LabCaseStatus]] = {
    LabCaseStatus.draft: frozenset({LabCaseStatus.sent_to_lab, LabCaseStatus.cancelled}),
    LabCaseStatus.sent_to_lab: frozenset({LabCaseStatus.received_from_lab, LabCaseStatus.cancelled}),
    LabCaseStatus.received_from_lab: frozenset(
        {LabCaseStatus.fitted_to_patient, LabCaseStatus.cancelled}
    ),
    LabCaseStatus.fitted_to_patient: frozenset(),
    LabCaseStatus.cancelled: frozenset(),
}

TERMINAL_APPOINTMENT_STATUSES = frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled})
TERMINAL_LAB_CASE_STATUSES = frozenset({LabCaseStatus.fitted_to_patient, LabCaseStatus.cancelled})


def ensure_appointment_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if current == target:
        return
    if target not in APPOINTMENT_TRANSITIONS[current]:
        raise InvalidTransitionError("appointment", current.value, target.value)


def ensure_lab_case_transition(current: LabCaseStatus, target: LabCaseStatus) -> None:
    if current == target:
        return
    if target not in LAB_CASE_TRANSITIONS[current]:
        raise InvalidTransitionError("lab case", current.value, target.value)


def is_lab_case_pending(status: LabCaseStatus) -> bool:
    return status not in TERMINAL_LAB_CASE_STATUSES


def invoice_status_for(amount_pence: int, paid_pence: int) -> SupplierInvoiceStatus:
    if paid_pence <= 0:
        return SupplierInvoiceStatus.unpaid
    if paid_pence >= amount_pence:
        return SupplierInvoiceStatus.paid
    return SupplierInvoiceStatus.partially_paid
