"""Auth API — login, current user, forgot/reset password.

Learn: Routes for the session lifecycle:
- POST /auth/login → email/password → JWT + public profile
- GET /auth/me → current user info (bearer token required)
- POST /auth/forgot-password → always 200 (anti-enumeration)
- POST /auth/reset-password → {ok: true/false}, no detail either way
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pmhome.auth.dependencies import CurrentIdentity, require_any_role
from pmhome.auth.jwt import TokenCodec, get_token_codec
from pmhome.db.engine import get_db
from pmhome.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    OkResponse,
    ProfileRead,
    ResetPasswordRequest,
)
from pmhome.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _svc(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(db, codec)


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → JWT token and profile."""
    result = await svc.login(body.email, body.password)
    return {"token": result.token, "user": result.user}


@router.get("/me", response_model=ProfileRead)
async def get_me(
    identity: CurrentIdentity = Depends(require_any_role),
    svc: AuthService = Depends(_svc),
):
    """Re-read the authenticated user; the token alone is not enough if
    the account was deactivated or deleted since it was issued."""
    return await svc.get_current_user(identity.user_id)


@router.post("/forgot-password", response_model=OkResponse)
async def forgot_password(
    body: ForgotPasswordRequest, svc: AuthService = Depends(_svc)
):
    await svc.request_password_reset(body.email)
    return {"ok": True}


@router.post("/reset-password", response_model=OkResponse)
async def reset_password(
    body: ResetPasswordRequest, svc: AuthService = Depends(_svc)
):
    ok = await svc.reset_password(body.token, body.new_password)
    return {"ok": ok}
