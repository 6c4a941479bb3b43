"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. The users router is admin-only: require_admin
depends on get_current_identity, so the token check always runs first
and the role check second. Health and auth routers are open (/auth/me
guards itself).
"""

from fastapi import APIRouter, Depends

from pmhome.api.auth import router as auth_router
from pmhome.api.health import router as health_router
from pmhome.api.users import router as users_router
from pmhome.auth.dependencies import require_admin

api_router = APIRouter()

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Admin routes: require a valid JWT with the ADMIN role
api_router.include_router(
    users_router, tags=["users"], dependencies=[Depends(require_admin)]
)
