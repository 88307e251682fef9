from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.lab_case import LabCaseStatus
from app.schemas.common import PatchModel


class LabCaseCreate(BaseModel):
    patient_id: int
    lab_id: int
    case_type: str = Field(min_length=1, max_length=120)
    sent_date: Optional[date] = None
    due_date: date
    return_date: Optional[date] = None
    status: LabCaseStatus = LabCaseStatus.draft
    lab_cost_pence: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class LabCaseUpdate(PatchModel):
    not_null = frozenset(
        {"patient_id", "lab_id", "case_type", "due_date", "status", "lab_cost_pence"}
    )

    patient_id: Optional[int] = None
    lab_id: Optional[int] = None
    case_type: Optional[str] = Field(default=None, min_length=1, max_length=120)
    sent_date: Optional[date] = None
    due_date: Optional[date] = None
    return_date: Optional[date] = None
    status: Optional[LabCaseStatus] = None
    lab_cost_pence: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class LabCaseOut(LabCaseCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
