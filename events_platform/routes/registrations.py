# events_platform/routes/registrations.py
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from events_platform.auth_token import Identity
from events_platform.database import get_db
from events_platform.deps.security import require_staff, require_user
from events_platform.errors import InternalError
from events_platform.schemas import MyRegistration, StaffRegistrationsResponse
from events_platform.services.registrations import list_user_registrations, load_staff_registrations

router = APIRouter(prefix="/registrations", tags=["Registrations"])
logger = logging.getLogger(__name__)


@router.get("/staff", response_model=StaffRegistrationsResponse)
async def get_staff_registrations(
    identity: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Registrations for every event the calling staff member created.

    Any failure past the auth checks (store errors, bad stored dates, the
    deadline) is logged and answered with a bare 500; nothing partial is
    returned.
    """
    try:
        events = await load_staff_registrations(db, identity.user_id)
    except Exception as exc:
        logger.exception("Error fetching registrations for staff %s: %s", identity.user_id, exc)
        raise InternalError()
    return StaffRegistrationsResponse(events=events)


@router.get("/me", response_model=List[MyRegistration])
async def get_my_registrations(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_registrations(db, identity.user_id)
