from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import PatchModel


class DentistCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    specialty: str = ""
    color: str = ""


class DentistUpdate(PatchModel):
    not_null = frozenset({"name", "specialty", "color"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    specialty: Optional[str] = None
    color: Optional[str] = None


class DentistOut(DentistCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
