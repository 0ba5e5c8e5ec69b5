"""API routes."""

from fastapi import APIRouter

from catalog_sync.routes import admin

api_router = APIRouter()

# Admin endpoints (import runs, reports, mapping cache)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
