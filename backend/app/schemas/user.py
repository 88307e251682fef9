from typing import Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.user import Role as RoleEnum


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    full_name: str
    clinic_name: str
    role: RoleEnum
    is_active: bool
    must_change_password: bool
    created_at: datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=200)
    clinic_name: Optional[str] = Field(default=None, max_length=200)
