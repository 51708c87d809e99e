"""
Authentication Router

Login, token refresh, logout and the caller's own profile and permissions.
"""

from typing import List

from fastapi import APIRouter, Depends

from poscore.auth.dependencies import get_auth_service
from poscore.auth.schemas import LoginRequest, MeOut, MessageOut, RefreshRequest, TokenPairOut
from poscore.auth.service import AuthService
from poscore.common.auth.dependencies import get_current_user_id
from poscore.common.responses import Envelope, envelope

router = APIRouter(tags=["auth"])


@router.post("/auth/login", response_model=Envelope[TokenPairOut])
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """Log in with an email or username and a password."""
    pair = await auth.login(body.login_identifier, body.password)
    return envelope(TokenPairOut(access_token=pair.access_token, refresh_token=pair.refresh_token))


@router.post("/auth/refresh", response_model=Envelope[TokenPairOut])
async def refresh(body: RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new token pair; the old refresh token stops working."""
    pair = await auth.refresh(body.refresh_token)
    return envelope(TokenPairOut(access_token=pair.access_token, refresh_token=pair.refresh_token))


@router.post("/auth/logout", response_model=Envelope[MessageOut])
async def logout(
    body: RefreshRequest,
    user_id: int = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(body.refresh_token)
    return envelope(MessageOut(message="Session closed successfully"))


@router.get("/me", response_model=Envelope[MeOut])
async def get_me(user_id: int = Depends(get_current_user_id), auth: AuthService = Depends(get_auth_service)):
    """Profile of the authenticated user with roles and branches."""
    user = await auth.get_identity(user_id)
    return envelope(MeOut.from_user(user))


@router.get("/me/permissions", response_model=Envelope[List[str]])
async def get_my_permissions(
    user_id: int = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
):
    """Permission keys held by the authenticated user."""
    return envelope(await auth.get_permissions(user_id))


__all__ = ["router"]
