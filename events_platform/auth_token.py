import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from events_platform.database import get_db
from events_platform.models.user import User

load_dotenv()

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
EXPIRY_MINUTES = int(os.getenv("JWT_EXPIRY_MINUTES", "60"))

# auto_error=False: a missing token resolves to "no identity" and the
# require_* dependencies decide how to answer.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, resolved once per request."""

    user_id: str
    role: Optional[str]
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(user_id=user.id, role=user.role, email=user.email, name=user.name)


def create_access_token(data: dict, expires_minutes: int = EXPIRY_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_user_id(token: str) -> Optional[str]:
    """Return the ``user_id`` claim of a valid token, else None."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        return None
    user_id = payload.get("user_id")
    return str(user_id) if user_id else None


async def get_current_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[Identity]:
    """Resolve the bearer token to an Identity, or None when there is none.

    The role comes from the stored user, not from the token, so a demoted
    account loses access as soon as its row changes.
    """
    if not token:
        return None

    user_id = decode_user_id(token)
    if user_id is None:
        return None

    user = await db.get(User, user_id)
    if user is None:
        return None
    return Identity.from_user(user)
