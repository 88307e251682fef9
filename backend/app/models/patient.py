from __future__ import annotations

import enum
from datetime import date

from sqlalchemy import JSON, Date, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, OwnedMixin


class Gender(str, enum.Enum):
    male = "MALE"
    female = "FEMALE"
    other = "OTHER"


class Patient(Base, OwnedMixin):
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[Gender] = mapped_column(Enum(Gender, name="gender"), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    medical_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    treatment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    allergies: Mapped[str | None] = mapped_column(Text, nullable=True)
    medications: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_provider: Mapped[str | None] = mapped_column(String(120), nullable=True)
    insurance_policy_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    emergency_contact_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_visit: Mapped[date | None] = mapped_column(Date, nullable=True)
    dental_chart: Mapped[dict] = mapped_column(JSON, nullable=False)

    appointments = relationship("Appointment", back_populates="patient")
    treatment_records = relationship("TreatmentRecord", back_populates="patient")
    payments = relationship("Payment", back_populates="patient")
