"""API v1 router combining all endpoint routers."""

from fastapi import APIRouter

from authsession.api.v1 import accounts, auth

router = APIRouter()

# Include all routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
