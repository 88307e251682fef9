from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, OwnedMixin


class TreatmentDefinition(Base, OwnedMixin):
    __tablename__ = "treatment_definitions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    base_price_pence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    doctor_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    clinic_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)


class TreatmentRecord(Base, OwnedMixin):
    __tablename__ = "treatment_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False, index=True)
    dentist_id: Mapped[int | None] = mapped_column(
        ForeignKey("dentists.id", ondelete="SET NULL"), nullable=True, index=True
    )
    treatment_definition_id: Mapped[int | None] = mapped_column(
        ForeignKey("treatment_definitions.id", ondelete="SET NULL"), nullable=True
    )
    treatment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_treatment_cost_pence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    doctor_share_pence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    clinic_share_pence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    patient = relationship("Patient", back_populates="treatment_records")
    inventory_items_used = relationship(
        "TreatmentRecordItem",
        back_populates="treatment_record",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class TreatmentRecordItem(Base):
    __tablename__ = "treatment_record_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    treatment_record_id: Mapped[int] = mapped_column(
        ForeignKey("treatment_records.id"), nullable=False, index=True
    )
    inventory_item_id: Mapped[int | None] = mapped_column(
        ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    cost_pence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    treatment_record = relationship("TreatmentRecord", back_populates="inventory_items_used")
