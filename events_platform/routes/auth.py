# events_platform/routes/auth.py
import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from events_platform.auth_token import Identity, create_access_token
from events_platform.database import get_db
from events_platform.deps.security import require_user
from events_platform.errors import BadRequest, Unauthorized
from events_platform.models.user import ROLE_STAFF, User
from events_platform.schemas import LoginResponse, UserProfile, UserRegister
from events_platform.security import check_password, hash_password

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "An account with this email already exists. Please sign in instead."


def dashboard_path(role: str) -> str:
    return "/staff/dashboard" if role == ROLE_STAFF else "/dashboard"


@router.post("/register", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
async def register(user: UserRegister, db: AsyncSession = Depends(get_db)):
    existing = await db.scalar(select(User.id).where(User.email == user.email))
    if existing:
        raise BadRequest(DUPLICATE_EMAIL)

    new_user = User(
        name=user.name,
        email=user.email,
        password_hash=hash_password(user.password),
        role=user.role,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.info("Registered %s account %s", new_user.role, new_user.id)
    return new_user


@router.post("/login", response_model=LoginResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    email = form_data.username.strip().lower()
    db_user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    matches, new_hash = check_password(form_data.password, db_user.password_hash) if db_user else (False, None)
    if not matches:
        raise Unauthorized("Invalid credentials")
    if new_hash:
        db_user.password_hash = new_hash
        await db.commit()

    token = create_access_token({"user_id": db_user.id, "role": db_user.role})
    return LoginResponse(
        access_token=token,
        role=db_user.role,
        redirect=dashboard_path(db_user.role),
    )


@router.get("/me", response_model=UserProfile)
async def read_me(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, identity.user_id)
    if user is None:
        raise Unauthorized()
    return user
