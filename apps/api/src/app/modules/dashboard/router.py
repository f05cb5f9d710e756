"""
Dashboard Router

Endpoints:
- GET  /dashboard/stats           - Counts for the caller (global for admins)
- GET  /dashboard/admin/stats     - Platform totals (admin)
- GET  /dashboard/admin/settings  - Site and Stripe settings (admin)
- POST /dashboard/admin/settings  - Save settings (admin)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user, get_current_user
from app.core.database import get_db
from app.modules.dashboard import service
from app.modules.dashboard.schemas import (
    AdminSettings,
    AdminSettingsUpdate,
    AdminStats,
    DashboardStats,
    MessageResponse,
)

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await service.get_stats(db, user)


@router.get("/admin/stats", response_model=AdminStats)
async def get_admin_stats(
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await service.get_admin_stats(db)


@router.get("/admin/settings", response_model=AdminSettings)
async def get_admin_settings(
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await service.get_admin_settings(db)


@router.post("/admin/settings", response_model=MessageResponse)
async def save_admin_settings(
    body: AdminSettingsUpdate,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await service.save_admin_settings(db, body)
    return MessageResponse(message="Settings saved successfully")
