"""API routes."""

from fastapi import APIRouter

from offerdesk.routes import admin, offers

api_router = APIRouter()

# Public storefront endpoint
api_router.include_router(offers.router, prefix="/api", tags=["offers"])

# Admin moderation (shared-secret key)
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
