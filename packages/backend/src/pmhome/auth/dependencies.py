"""FastAPI auth dependencies — the auth middleware and the role gate.

Learn: These are used as Depends() on routers or handlers. get_current_identity
verifies the bearer token and attaches the identity to request.state;
RoleGate depends on it, so it can never run without authentication first.

Every authentication failure (no header, wrong scheme, extra segments,
bad signature, expired, no subject) produces the same 401 "Unauthorized".
The raw token is never logged.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from pmhome.auth.jwt import TokenCodec, TokenError, get_token_codec
from pmhome.db.models import Role
from pmhome.errors import AuthenticationError, AuthorizationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated identity making the request."""

    user_id: str
    role: Role

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


def parse_bearer(authorization: Optional[str]) -> str:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not authorization or not isinstance(authorization, str):
        raise AuthenticationError()
    parts = authorization.strip().split()
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthenticationError()
    return parts[1]


async def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_token_codec),
) -> CurrentIdentity:
    """Verify the bearer token and attach the identity to the request."""
    token = parse_bearer(authorization)
    try:
        claims = codec.verify(token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=str(e))
        raise AuthenticationError()

    identity = CurrentIdentity(user_id=claims.user_id, role=claims.role)
    request.state.identity = identity
    return identity


class RoleGate:
    """Dependency that only lets the declared roles through.

    Usage:
        router = APIRouter(dependencies=[Depends(RoleGate(Role.ADMIN))])
    """

    def __init__(self, *allowed: Role):
        if not allowed:
            raise ValueError("RoleGate needs at least one role")
        self.allowed = frozenset(Role(r) for r in allowed)

    async def __call__(
        self, identity: CurrentIdentity = Depends(get_current_identity)
    ) -> CurrentIdentity:
        if identity.role not in self.allowed:
            logger.info(
                "auth.role_denied",
                user_id=identity.user_id,
                role=identity.role.value,
            )
            raise AuthorizationError()
        return identity


require_admin = RoleGate(Role.ADMIN)
require_any_role = RoleGate(Role.ADMIN, Role.EMPLOYEE)
