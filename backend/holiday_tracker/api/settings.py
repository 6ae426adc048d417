from __future__ import annotations

from fastapi import APIRouter

from holiday_tracker.api.deps import AdminDep, AuthDep, SystemSettingsDep
from holiday_tracker.config import get_settings
from holiday_tracker.db import SessionDep
from holiday_tracker.schemas.settings import SettingsResponse, UpdateSettingsRequest
from holiday_tracker.services import settings as settings_service

settings_router = APIRouter(prefix="/settings", tags=["settings"])


@settings_router.get("", response_model=SettingsResponse)
async def get_settings_view(
    auth: AuthDep,
    settings: SystemSettingsDep,
) -> SettingsResponse:
    """Return the effective system settings."""
    return settings_service.build_settings_response(settings)


@settings_router.put("", response_model=SettingsResponse)
async def update_settings(
    payload: UpdateSettingsRequest,
    session: SessionDep,
    auth: AdminDep,
) -> SettingsResponse:
    """Update system settings (admin only)."""
    return await settings_service.update_system_settings(session, auth, payload, get_settings())
