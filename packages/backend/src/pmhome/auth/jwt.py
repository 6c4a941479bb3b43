"""JWT session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries the user id (`sub`) and role, signed with a shared secret. The
secret is injected at construction: build one TokenCodec from settings
and hand it to whoever needs to sign or verify.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from pmhome.config import Settings, settings
from pmhome.db.models import Role
from pmhome.errors import ConfigurationError


class TokenError(Exception):
    """Raised when token verification fails."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: Role
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """Signs and verifies session tokens with one shared secret."""

    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS256",
        expires: timedelta = timedelta(days=7),
    ):
        self._secret = secret
        self.algorithm = algorithm
        self.expires = expires

    @classmethod
    def from_settings(cls, cfg: Settings) -> "TokenCodec":
        return cls(
            secret=cfg.jwt_secret,
            algorithm=cfg.jwt_algorithm,
            expires=timedelta(days=cfg.token_expire_days),
        )

    def _require_secret(self) -> str:
        if not self._secret:
            raise ConfigurationError("JWT secret is not set")
        return self._secret

    def issue(
        self,
        user_id: str,
        role: Role,
        expires: Optional[timedelta] = None,
    ) -> str:
        """Create a signed token for this user."""
        secret = self._require_secret()
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "role": Role(role).value,
            "iat": now,
            "exp": now + (expires if expires is not None else self.expires),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Raises TokenError on any failure; the caller turns every one of
        them into the same 401.
        """
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")

        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise TokenError("Token has no subject")
        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise TokenError("Token has an unknown role")

        return TokenClaims(
            user_id=user_id,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


def get_token_codec() -> TokenCodec:
    """FastAPI dependency: the codec built from the process settings.

    Tests override this with a codec holding a known secret.
    """
    return TokenCodec.from_settings(settings)
