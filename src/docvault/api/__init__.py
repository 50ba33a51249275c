"""API route aggregation.

All routers registered here get mounted in main.py under
settings.api_prefix.

Auth is applied at the include_router level using FastAPI's
dependencies parameter, so no document or contract route can be
reached without a valid session token. Health and auth routers are
open; the authenticated /auth routes declare the dependency per route.
"""

from fastapi import APIRouter, Depends

from docvault.api.auth import router as auth_router
from docvault.api.contracts import router as contracts_router
from docvault.api.documents import router as documents_router
from docvault.api.health import router as health_router
from docvault.auth.dependencies import get_current_identity
from docvault.config import settings

# All protected routers require authentication
_auth = [Depends(get_current_identity)]

api_router = APIRouter(prefix=settings.api_prefix)

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: require a valid session token
api_router.include_router(documents_router, tags=["documents"], dependencies=_auth)
api_router.include_router(contracts_router, tags=["contracts"], dependencies=_auth)
