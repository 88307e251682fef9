import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.security import create_access_token, verify_password
from app.core.settings import settings
from app.db.session import get_db
from app.deps import get_current_user
from app.models.user import User
from app.schemas.auth import ChangePasswordRequest, ChangePasswordResponse, LoginRequest, Token
from app.schemas.user import ProfileUpdate, UserOut
from app.services.audit import log_event
from app.services.rate_limit import SimpleRateLimiter
from app.services.users import get_user_by_email, set_password

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("clinic_manager.auth")

LOGIN_LIMITER = SimpleRateLimiter(max_events=10, window_seconds=60)
LOGIN_IP_LIMITER = SimpleRateLimiter(max_events=20, window_seconds=60)


@router.post("/login", response_model=Token)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    ip_address = request.client.host if request.client else "unknown"
    rate_key = f"{ip_address}:{payload.email.lower().strip()}"
    if not LOGIN_LIMITER.allow(rate_key) or not LOGIN_IP_LIMITER.allow(ip_address):
        wait = max(LOGIN_LIMITER.retry_after(rate_key), LOGIN_IP_LIMITER.retry_after(ip_address))
        logger.warning("Login throttled for %s", rate_key)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts",
            headers={"Retry-After": str(wait)},
        )

    user = get_user_by_email(db, payload.email)
    if user and not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token(
        subject=str(user.id),
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=settings.access_token_expire_minutes,
        extra={"role": user.role.value, "email": user.email},
    )
    return Token(access_token=token, must_change_password=user.must_change_password)


@router.post("/change-password", response_model=ChangePasswordResponse)
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not user.must_change_password:
        if not payload.old_password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Old password required")
        if not verify_password(payload.old_password, user.hashed_password):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid old password")
    elif payload.old_password and not verify_password(payload.old_password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid old password")

    log_event(
        db,
        actor=user,
        action="user.password_changed",
        entity_type="user",
        entity_id=str(user.id),
        after_data={"status": "success"},
    )
    set_password(db, user=user, new_password=payload.new_password, must_change_password=False)
    return ChangePasswordResponse(message="Password updated.")


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserOut)
def update_me(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    changes = {k: v.strip() for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    before = {field: getattr(user, field) for field in changes}
    for field, value in changes.items():
        setattr(user, field, value)
    log_event(
        db,
        actor=user,
        action="user.profile_updated",
        entity_type="user",
        entity_id=str(user.id),
        before_data=before,
        after_data=changes,
    )
    db.commit()
    db.refresh(user)
    return user
