from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.common import PatchModel

PERCENTAGE_TOLERANCE = Decimal("0.0001")


class TreatmentDefinitionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    base_price_pence: int = Field(ge=0)
    doctor_percentage: Decimal = Field(ge=0, le=1)
    clinic_percentage: Decimal = Field(ge=0, le=1)

    @model_validator(mode="after")
    def _split_adds_up(self):
        if abs(self.doctor_percentage + self.clinic_percentage - 1) > PERCENTAGE_TOLERANCE:
            raise ValueError("doctor_percentage and clinic_percentage must add up to 1")
        return self


class TreatmentDefinitionUpdate(PatchModel):
    not_null = frozenset({"name", "base_price_pence", "doctor_percentage", "clinic_percentage"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    base_price_pence: Optional[int] = Field(default=None, ge=0)
    doctor_percentage: Optional[Decimal] = Field(default=None, ge=0, le=1)
    clinic_percentage: Optional[Decimal] = Field(default=None, ge=0, le=1)


class TreatmentDefinitionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    base_price_pence: int
    doctor_percentage: Decimal
    clinic_percentage: Decimal


class TreatmentItemIn(BaseModel):
    inventory_item_id: Optional[int] = None
    quantity: int = Field(default=1, ge=1)
    cost_pence: Optional[int] = Field(default=None, ge=0)


class TreatmentItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    inventory_item_id: Optional[int] = None
    quantity: int
    cost_pence: int


class TreatmentRecordCreate(BaseModel):
    patient_id: int
    dentist_id: Optional[int] = None
    treatment_definition_id: int
    treatment_date: date
    notes: Optional[str] = None
    inventory_items_used: list[TreatmentItemIn] = []


class TreatmentRecordUpdate(PatchModel):
    not_null = frozenset(
        {"treatment_date", "total_treatment_cost_pence", "doctor_share_pence", "clinic_share_pence"}
    )

    dentist_id: Optional[int] = None
    treatment_date: Optional[date] = None
    notes: Optional[str] = None
    total_treatment_cost_pence: Optional[int] = Field(default=None, ge=0)
    doctor_share_pence: Optional[int] = Field(default=None, ge=0)
    clinic_share_pence: Optional[int] = Field(default=None, ge=0)


class TreatmentRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    dentist_id: Optional[int] = None
    treatment_definition_id: Optional[int] = None
    treatment_date: date
    notes: Optional[str] = None
    inventory_items_used: list[TreatmentItemOut]
    total_treatment_cost_pence: int
    doctor_share_pence: int
    clinic_share_pence: int
    created_at: datetime
