from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, OwnedMixin


class AppointmentStatus(str, enum.Enum):
    scheduled = "SCHEDULED"
    confirmed = "CONFIRMED"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


class ReminderTime(str, enum.Enum):
    none = "none"
    one_hour_before = "1_hour_before"
    two_hours_before = "2_hours_before"
    one_day_before = "1_day_before"


class Appointment(Base, OwnedMixin):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    dentist_id: Mapped[int | None] = mapped_column(
        ForeignKey("dentists.id", ondelete="SET NULL"), nullable=True, index=True
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus, name="appointment_status"),
        default=AppointmentStatus.scheduled,
        nullable=False,
    )
    reminder_time: Mapped[ReminderTime] = mapped_column(
        Enum(ReminderTime, name="reminder_time"),
        default=ReminderTime.none,
        nullable=False,
    )
    reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    patient = relationship("Patient", back_populates="appointments")
