"""Main API router for v1."""
from fastapi import APIRouter

from meetstake.api.v1.endpoints import auth, meetings, wallets, admin

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(meetings.router, prefix="/meetings", tags=["Meeting Stakes"])
api_router.include_router(wallets.router, prefix="/wallets", tags=["Wallets"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
