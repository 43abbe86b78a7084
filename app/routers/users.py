# app/routers/users.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_auth, require_admin
from app.database import get_session
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileRead, ProfileUpdate, ProfileRoleUpdate
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/users", tags=["Users"])

repo = ProfileRepository()
service = ProfileService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ProfileRead)
def read_me(current: Profile = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    The profile is auto-created (role "staff") on the first request.
    """
    return service.get_me(current)


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Update the authenticated user's profile.

    Only `phone_number` is editable (used for low stock SMS alerts).
    """
    return service.update_me(session, current, payload)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[ProfileRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """
    List all profiles (admin only).
    """
    return service.list_profiles(session, skip, limit)


@router.get(
    "/{user_id}",
    response_model=ProfileRead,
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a specific profile by id (admin only).
    """
    return service.get_profile(session, user_id)


@router.patch(
    "/{user_id}/role",
    response_model=ProfileRead,
    dependencies=[Depends(require_admin)],
)
def change_role(
    user_id: uuid.UUID,
    payload: ProfileRoleUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a user's role (admin only).

    Allowed roles: admin, staff.
    """
    return service.update_role(session, user_id, payload)
