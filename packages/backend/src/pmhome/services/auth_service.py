"""Auth service — login, current user, forgot/reset password.

Learn: Service layer separates business logic from HTTP routing.
Failures are raised as pmhome.errors exceptions; the API layer never
decides which status a bad password deserves.

Login answers "Invalid credentials" for every credential problem (no such
user, no hash on file, wrong password) so callers can't probe which emails
exist. An inactive account is the one distinct case: 403.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from pmhome.auth.jwt import TokenCodec
from pmhome.auth.password import (
    generate_reset_token,
    hash_password_async,
    hash_reset_token,
    verify_password_async,
)
from pmhome.config import settings
from pmhome.db.models import PasswordResetToken, User, as_utc
from pmhome.db.user_repo import UserRepository, normalize_email
from pmhome.errors import AuthenticationError, AuthorizationError, ValidationError
from pmhome.services.reset_sender import (
    LoggingResetLinkSender,
    ResetLinkSender,
    build_reset_link,
)

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid credentials"
INACTIVE_ACCOUNT = "User account is inactive"
MIN_RESET_PASSWORD_LENGTH = 8


def public_profile(user: User) -> dict[str, Any]:
    """The profile returned by login and /auth/me."""
    return {
        "userId": user.id,
        "email": user.email,
        "role": user.role.value,
        "name": user.name,
        "department": user.department.value,
    }


@dataclass
class LoginResult:
    token: str
    user: dict[str, Any]


class AuthService:
    """Business logic for authentication."""

    def __init__(
        self,
        db: AsyncSession,
        codec: TokenCodec,
        reset_sender: ResetLinkSender | None = None,
        bcrypt_rounds: int | None = None,
        reset_token_ttl: timedelta | None = None,
    ):
        self.db = db
        self.codec = codec
        self.users = UserRepository(db)
        self.reset_sender = reset_sender or LoggingResetLinkSender()
        self.bcrypt_rounds = bcrypt_rounds or settings.bcrypt_rounds
        self.reset_token_ttl = reset_token_ttl or timedelta(
            minutes=settings.reset_token_expire_minutes
        )

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: str | None, password: str | None) -> LoginResult:
        if not isinstance(email, str) or not isinstance(password, str):
            raise ValidationError("Email and password are required")
        if not normalize_email(email) or not password:
            raise ValidationError("Email and password are required")

        user = await self.users.get_by_email(email)
        if user is None:
            logger.info("auth.login_failed", reason="unknown_email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.is_active:
            logger.info("auth.login_failed", reason="inactive", user_id=user.id)
            raise AuthorizationError(INACTIVE_ACCOUNT)

        if not user.password_hash:
            logger.info("auth.login_failed", reason="no_password", user_id=user.id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not await verify_password_async(password, user.password_hash):
            logger.info("auth.login_failed", reason="bad_password", user_id=user.id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        token = self.codec.issue(user.id, user.role)
        logger.info("auth.login_succeeded", user_id=user.id, role=user.role.value)
        return LoginResult(token=token, user=public_profile(user))

    # ─── Current user ───────────────────────────────────

    async def get_current_user(self, user_id: str) -> dict[str, Any]:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise AuthenticationError()
        if not user.is_active:
            raise AuthorizationError(INACTIVE_ACCOUNT)
        return public_profile(user)

    # ─── Forgot / reset password ────────────────────────

    async def request_password_reset(self, email: str | None) -> None:
        """Issue a reset link if the account exists. Always returns normally."""
        if not isinstance(email, str) or not normalize_email(email):
            return

        user = await self.users.get_by_email(email)
        if user is None or not user.is_active:
            logger.info("password_reset.requested", matched=False)
            return

        token = generate_reset_token()
        row = PasswordResetToken(
            user_id=user.id,
            token_hash=hash_reset_token(token),
            expires_at=datetime.now(timezone.utc) + self.reset_token_ttl,
        )
        self.db.add(row)
        await self.db.commit()

        logger.info("password_reset.requested", matched=True, user_id=user.id)
        await self.reset_sender.send(user.email, build_reset_link(token))

    async def reset_password(self, token: str | None, new_password: str | None) -> bool:
        """Set a new password using a reset token. False on any failure."""
        if not isinstance(token, str) or not token:
            return False
        if not isinstance(new_password, str):
            return False
        if len(new_password) < MIN_RESET_PASSWORD_LENGTH:
            return False

        token_hash = hash_reset_token(token)
        result = await self.db.execute(
            select(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash)
        )
        row = result.scalars().first()
        if row is None or row.used_at is not None:
            return False
        if as_utc(row.expires_at) <= datetime.now(timezone.utc):
            return False

        user = await self.users.get_by_id(row.user_id)
        if user is None or not user.is_active:
            return False
        user_id = user.id

        password_hash = await hash_password_async(new_password, self.bcrypt_rounds)

        # Claim the token in one conditional UPDATE; only one caller can win.
        now = datetime.now(timezone.utc)
        claim = await self.db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > now,
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        if claim.rowcount != 1:
            await self.db.rollback()
            logger.info("password_reset.token_already_used", user_id=user_id)
            return False

        set_committed_value(row, "used_at", now)
        await self.users.update_password(user_id, password_hash)
        await self.db.commit()

        logger.info("password_reset.completed", user_id=user_id)
        return True
