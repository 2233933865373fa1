# events_platform/deps/security.py
from typing import Optional

from fastapi import Depends

from events_platform.auth_token import Identity, get_current_identity
from events_platform.errors import Forbidden, Unauthorized
from events_platform.models.user import ROLE_STAFF


def is_staff(identity: Identity) -> bool:
    # Exact match only; a missing or differently-cased role is not staff.
    return identity.role == ROLE_STAFF


def require_user(identity: Optional[Identity] = Depends(get_current_identity)) -> Identity:
    """401 if there is no valid identity; returns it otherwise."""
    if identity is None:
        raise Unauthorized()
    return identity


def require_staff(identity: Identity = Depends(require_user)) -> Identity:
    """403 if the caller is authenticated but not staff."""
    if not is_staff(identity):
        raise Forbidden()
    return identity


def require_attendee(identity: Identity = Depends(require_user)) -> Identity:
    """403 for staff, who cannot register for events."""
    if is_staff(identity):
        raise Forbidden("Staff members cannot register for events")
    return identity
