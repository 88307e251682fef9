from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, OwnedMixin


class Dentist(Base, OwnedMixin):
    __tablename__ = "dentists"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    specialty: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    color: Mapped[str] = mapped_column(String(32), default="", nullable=False)
