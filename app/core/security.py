from datetime import datetime, timedelta, timezone
from typing import Optional, Any

from jose import JWTError, jwt

from app.config import settings


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """
    Sign an access token for `subject`.

    Dashboard tokens come from the identity provider; this exists for
    operator tooling and the tests. Extra claims (e.g. "name") are merged
    into the payload.
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": str(subject),
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "type": "access",
        **(additional_claims or {}),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """Payload of a validly signed, unexpired token, else None."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[str]:
    """
    Acting user named by an access token, or None when it is unusable.

    The "name" claim wins over "sub" so display names reach the access log.
    """
    payload = decode_token(token)
    if payload is None or payload.get("type", "access") != "access":
        return None
    return payload.get("name") or payload.get("sub")
