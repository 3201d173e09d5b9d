"""
marketplace/api/auth.py — Authentication endpoints.

    POST /auth/login — verified Firebase identity → local user record (created on first login)
"""

from fastapi import APIRouter, Depends

from marketplace.dependencies import get_event_publisher, get_user_repo, get_verified_identity
from marketplace.events import EventPublisher
from marketplace.models.user import UserRead, VerifiedIdentity
from marketplace.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=UserRead,
    summary="Log in with a Firebase ID token",
)
async def login(
    identity: VerifiedIdentity = Depends(get_verified_identity),
    users=Depends(get_user_repo),
    events: EventPublisher | None = Depends(get_event_publisher),
):
    """Returns the caller's user record, creating it on first login."""
    return await auth_service.login(identity, users, events)
