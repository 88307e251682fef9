from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.models.user import Role, User


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email.lower().strip()))


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str = "",
    clinic_name: str = "",
    role: Role = Role.owner,
    is_active: bool = True,
    must_change_password: bool = False,
) -> User:
    now = datetime.now(timezone.utc)
    user = User(
        email=email.lower().strip(),
        full_name=full_name,
        clinic_name=clinic_name,
        role=role,
        is_active=is_active,
        must_change_password=must_change_password,
        hashed_password=hash_password(password),
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def user_count(db: Session) -> int:
    return int(db.scalar(select(func.count(User.id))) or 0)


def seed_initial_admin(db: Session, *, email: str, password: str) -> bool:
    if user_count(db) > 0:
        return False
    create_user(
        db,
        email=email,
        password=password,
        full_name="Clinic owner",
        is_active=True,
        must_change_password=True,
    )
    return True


def set_password(
    db: Session,
    *,
    user: User,
    new_password: str,
    must_change_password: bool | None = None,
) -> User:
    user.hashed_password = hash_password(new_password)
    if must_change_password is not None:
        user.must_change_password = must_change_password
    user.updated_at = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
