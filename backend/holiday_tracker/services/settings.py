from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select

from holiday_tracker.models.base import utcnow
from holiday_tracker.models.enums import AuditAction, AuditEntityType
from holiday_tracker.models.setting import SystemSetting
from holiday_tracker.schemas.settings import SettingsResponse, SystemSettings, VisibilitySettings
from holiday_tracker.services.audit import write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from holiday_tracker.config import Settings
    from holiday_tracker.schemas.auth import AuthContext
    from holiday_tracker.schemas.settings import UpdateSettingsRequest

logger = logging.getLogger(__name__)

VISIBILITY_MODE_KEY = "holidays.visibility_mode"
SHOW_NAMES_KEY = "holidays.show_names"
SHOW_DETAILS_KEY = "holidays.show_details"
DEFAULT_ALLOWANCE_KEY = "system.default_holiday_allowance"

# Payload field -> stored key.
_FIELD_KEYS = {
    "visibility_mode": VISIBILITY_MODE_KEY,
    "show_names": SHOW_NAMES_KEY,
    "show_details": SHOW_DETAILS_KEY,
    "default_holiday_allowance": DEFAULT_ALLOWANCE_KEY,
}


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() == "true"


def _parse_allowance(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using %d", DEFAULT_ALLOWANCE_KEY, raw, default)
        return default
    if not 1 <= value <= 50:
        logger.warning("Ignoring out-of-range %s=%d, using %d", DEFAULT_ALLOWANCE_KEY, value, default)
        return default
    return value


def _to_storage(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def load_system_settings(session: AsyncSession, config: Settings) -> SystemSettings:
    """Read stored overrides once and merge them over the configured defaults."""
    result = await session.execute(select(SystemSetting))
    stored = {row.key: row.value for row in result.scalars().all()}

    return SystemSettings(
        visibility=VisibilitySettings(
            visibility_mode=stored.get(VISIBILITY_MODE_KEY, config.default_visibility_mode),
            show_names=_parse_bool(stored.get(SHOW_NAMES_KEY), default=True),
            show_details=_parse_bool(stored.get(SHOW_DETAILS_KEY), default=True),
        ),
        default_holiday_allowance=_parse_allowance(stored.get(DEFAULT_ALLOWANCE_KEY), config.default_holiday_allowance),
    )


def build_settings_response(settings: SystemSettings) -> SettingsResponse:
    return SettingsResponse(
        visibility_mode=settings.visibility.visibility_mode,
        show_names=settings.visibility.show_names,
        show_details=settings.visibility.show_details,
        default_holiday_allowance=settings.default_holiday_allowance,
    )


async def update_system_settings(
    session: AsyncSession,
    auth: AuthContext,
    payload: UpdateSettingsRequest,
    config: Settings,
) -> SettingsResponse:
    """Upsert the provided settings, auditing each changed key."""
    changes = payload.model_dump(exclude_none=True)

    for field, value in changes.items():
        key = _FIELD_KEYS[field]
        new_value = _to_storage(value)
        existing = await session.get(SystemSetting, key)
        old_value = existing.value if existing is not None else None
        if old_value == new_value:
            continue

        if existing is None:
            session.add(SystemSetting(key=key, value=new_value, updated_by=auth.user_id))
        else:
            existing.value = new_value
            existing.updated_by = auth.user_id
            existing.updated_at = utcnow()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.SETTING,
            entity_key=key,
            action=AuditAction.UPDATE,
            before_json={"value": old_value} if old_value is not None else None,
            after_json={"value": new_value},
        )
        logger.info("Setting %s changed from %r to %r by %s", key, old_value, new_value, auth.user_id)

    await session.commit()
    return build_settings_response(await load_system_settings(session, config))
