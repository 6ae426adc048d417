from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from holiday_tracker.models.enums import VisibilityMode


class VisibilitySettings(BaseModel):
    """Process-wide visibility settings, read once per request and passed by value."""

    model_config = ConfigDict(frozen=True)

    # Kept as a plain string so unknown stored values degrade to "own".
    visibility_mode: str = VisibilityMode.ALL_SEE_ALL
    show_names: bool = True
    show_details: bool = True


class SystemSettings(BaseModel):
    """All admin-configurable settings with defaults applied."""

    model_config = ConfigDict(frozen=True)

    visibility: VisibilitySettings = VisibilitySettings()
    default_holiday_allowance: int = Field(default=20, ge=1, le=50)


class UpdateSettingsRequest(BaseModel):
    """Request body for updating settings. Omitted fields are left unchanged."""

    visibility_mode: VisibilityMode | None = None
    show_names: bool | None = None
    show_details: bool | None = None
    default_holiday_allowance: int | None = Field(default=None, ge=1, le=50)


class SettingsResponse(BaseModel):
    """Effective settings as returned to clients."""

    visibility_mode: str
    show_names: bool
    show_details: bool
    default_holiday_allowance: int
