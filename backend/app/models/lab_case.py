from __future__ import annotations

import enum
from datetime import date

from sqlalchemy import Date, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, OwnedMixin


class LabCaseStatus(str, enum.Enum):
    draft = "DRAFT"
    sent_to_lab = "SENT_TO_LAB"
    received_from_lab = "RECEIVED_FROM_LAB"
    fitted_to_patient = "FITTED_TO_PATIENT"
    cancelled = "CANCELLED"


class LabCase(Base, OwnedMixin):
    __tablename__ = "lab_cases"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    lab_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id"), nullable=False, index=True)
    case_type: Mapped[str] = mapped_column(String(120), nullable=False)
    sent_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[LabCaseStatus] = mapped_column(
        Enum(LabCaseStatus, name="lab_case_status"),
        default=LabCaseStatus.draft,
        nullable=False,
    )
    lab_cost_pence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
