from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(ValueError):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    *,
    subject: str,
    secret: str,
    alg: str,
    expires_minutes: int,
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    now = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
    }
    claims.update(extra or {})
    return jwt.encode(claims, secret, algorithm=alg)


def decode_access_token(token: str, *, secret: str, alg: str) -> int:
    """Return the user id carried by a valid, unexpired token."""
    try:
        claims = jwt.decode(token, secret, algorithms=[alg])
        return int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError("Invalid token") from exc
