from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.appointment import AppointmentStatus, ReminderTime
from app.schemas.common import PatchModel


class AppointmentCreate(BaseModel):
    patient_id: int
    dentist_id: Optional[int] = None
    start_time: datetime
    end_time: datetime
    reason: str = ""
    status: AppointmentStatus = AppointmentStatus.scheduled
    reminder_time: ReminderTime = ReminderTime.none


class AppointmentUpdate(PatchModel):
    not_null = frozenset(
        {"patient_id", "start_time", "end_time", "reason", "status", "reminder_time", "reminder_sent"}
    )

    patient_id: Optional[int] = None
    dentist_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    reason: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    reminder_time: Optional[ReminderTime] = None
    reminder_sent: Optional[bool] = None


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    dentist_id: Optional[int] = None
    start_time: datetime
    end_time: datetime
    reason: str
    status: AppointmentStatus
    reminder_time: ReminderTime
    reminder_sent: bool


class ReminderOut(BaseModel):
    appointment: AppointmentOut
    link: Optional[str] = None
