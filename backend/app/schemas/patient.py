from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.patient import Gender
from app.schemas.common import PatchModel
from app.services.dental_chart import ToothStatus


class ToothIn(BaseModel):
    status: ToothStatus = ToothStatus.healthy
    notes: str = ""


class ToothOut(BaseModel):
    status: ToothStatus
    notes: str


class PatientBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    dob: Optional[date] = None
    gender: Gender
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    treatment_notes: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None
    insurance_provider: Optional[str] = None
    insurance_policy_number: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    last_visit: Optional[date] = None


class PatientCreate(PatientBase):
    pass


class PatientUpdate(PatchModel):
    not_null = frozenset({"name", "gender"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    dob: Optional[date] = None
    gender: Optional[Gender] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    treatment_notes: Optional[str] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None
    insurance_provider: Optional[str] = None
    insurance_policy_number: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    last_visit: Optional[date] = None


class PatientOut(PatientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: Optional[str] = None
    dental_chart: dict[str, ToothOut]
    created_at: datetime
    updated_at: datetime


class PatientBalanceOut(BaseModel):
    patient_id: int
    total_charges: int
    total_paid: int
    outstanding_balance: int
    balance_state: str


class PatientBalanceRow(PatientBalanceOut):
    patient_name: str


class ChartOut(BaseModel):
    patient_id: int
    teeth: dict[str, ToothOut]
    summary: dict[str, int]
