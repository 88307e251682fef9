import logging

from fastapi import APIRouter, Depends, Query, status

from app.core.settings import settings
from app.deps import get_store
from app.models.appointment import AppointmentStatus
from app.schemas.appointment import AppointmentCreate, AppointmentOut, AppointmentUpdate, ReminderOut
from app.services.alerts import build_reminder_link
from app.services.clinic_store import ClinicStore
from app.services.snapshot import AppointmentView, PatientView

router = APIRouter(prefix="/appointments", tags=["appointments"])
logger = logging.getLogger("clinic_manager.reminders")


@router.get("", response_model=list[AppointmentOut])
def list_appointments(
    store: ClinicStore = Depends(get_store),
    patient_id: int | None = Query(default=None),
    dentist_id: int | None = Query(default=None),
    status_filter: AppointmentStatus | None = Query(default=None, alias="status"),
):
    return store.list_appointments(patient_id=patient_id, dentist_id=dentist_id, status=status_filter)


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(payload: AppointmentCreate, store: ClinicStore = Depends(get_store)):
    return store.add_appointment(payload.model_dump())


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_appointment(appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int, payload: AppointmentUpdate, store: ClinicStore = Depends(get_store)
):
    return store.update_appointment(appointment_id, payload.model_dump(exclude_unset=True))


@router.post("/{appointment_id}/send-reminder", response_model=ReminderOut)
def send_reminder(appointment_id: int, store: ClinicStore = Depends(get_store)):
    appointment = store.get_appointment(appointment_id)
    patient = store.get_patient(appointment.patient_id)
    link = build_reminder_link(
        PatientView.model_validate(patient),
        AppointmentView.model_validate(appointment),
        clinic_name=store.owner.clinic_name,
        country_code=settings.reminder_country_code,
    )
    if link is None:
        logger.info("Appointment %s reminder has no phone number to send to", appointment.id)
    appointment = store.mark_reminder_sent(appointment.id)
    return ReminderOut(appointment=AppointmentOut.model_validate(appointment), link=link)
