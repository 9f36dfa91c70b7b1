from typing import Annotated, Optional
import logging

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.core.exceptions import ValidationError
from app.core.security import verify_access_token


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme; the token is optional
security = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> str:
    """
    Dependency returning the name of the acting user.

    No Authorization header means the anonymous actor. A token that is
    present but does not verify is rejected.
    """
    if credentials is None:
        return settings.ANONYMOUS_ACTOR

    actor = verify_access_token(credentials.credentials)
    if actor is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


async def get_expected_version(
    if_match: Annotated[Optional[str], Header(alias="If-Match")] = None,
) -> Optional[int]:
    """
    Parse the If-Match header into the version the caller last saw.

    Accepts a bare integer or an ETag-style quoted one ("3" or W/"3").
    """
    if if_match is None or not if_match.strip():
        return None

    raw = if_match.strip()
    if raw.startswith("W/"):
        raw = raw[2:]
    raw = raw.strip('"')
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("If-Match must be an integer version", {"ifMatch": if_match})


async def get_idempotency_key(
    idempotency_key: Annotated[Optional[str], Header(alias="Idempotency-Key")] = None,
) -> Optional[str]:
    if idempotency_key is None:
        return None
    return idempotency_key.strip() or None


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentActor = Annotated[str, Depends(get_current_actor)]
ExpectedVersion = Annotated[Optional[int], Depends(get_expected_version)]
IdempotencyKey = Annotated[Optional[str], Depends(get_idempotency_key)]
