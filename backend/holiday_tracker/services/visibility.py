"""Who may see which holiday requests, and which fields they get back.

Filtering and projection are separate steps: ``resolve_scope`` decides which
records are visible, ``project_holiday`` shapes each visible record for the
viewer's role.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict

from holiday_tracker.models.enums import HolidayStatus, ViewScope, VisibilityMode
from holiday_tracker.models.holiday import HolidayRequest
from holiday_tracker.models.user import Department, User
from holiday_tracker.schemas.auth import AuthContext
from holiday_tracker.schemas.holiday import ApproverSummary, DepartmentSummary, HolidayOwner, HolidayResponse
from holiday_tracker.schemas.settings import VisibilitySettings


class EffectiveScope(BaseModel):
    """The filter a viewer's listing is restricted to.

    ``owner_id`` limits results to one owner, ``department_id`` to owners in
    one department. With ``approved_only_for_others`` set, records owned by
    anyone but the viewer are visible only once approved.
    """

    model_config = ConfigDict(frozen=True)

    scope: ViewScope
    viewer_id: uuid.UUID
    owner_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None
    approved_only_for_others: bool = False

    def admits(self, owner_id: uuid.UUID, owner_department_id: uuid.UUID | None, status: str) -> bool:
        """In-memory form of the predicate the holiday service applies in SQL."""
        if self.owner_id is not None and owner_id != self.owner_id:
            return False
        if self.department_id is not None and owner_department_id != self.department_id:
            return False
        if self.approved_only_for_others and owner_id != self.viewer_id:
            return status == HolidayStatus.APPROVED
        return True


def _scope_from_settings(viewer: AuthContext, settings: VisibilitySettings) -> ViewScope:
    mode = settings.visibility_mode
    if mode == VisibilityMode.ALL_SEE_ALL:
        return ViewScope.ALL
    if mode == VisibilityMode.DEPARTMENT_ONLY and viewer.department_id is not None:
        return ViewScope.TEAM
    # admin_only, department_only without a department, and unknown values.
    return ViewScope.OWN


def resolve_scope(
    viewer: AuthContext,
    requested_scope: ViewScope | None,
    settings: VisibilitySettings,
) -> EffectiveScope:
    """Compute the effective scope for a viewer.

    Admins get the requested scope literally, any status. Non-admins get the
    requested scope, or one derived from the visibility mode when none is
    requested; for team/all they see other people's requests only once
    approved.
    """
    if viewer.is_admin:
        if requested_scope == ViewScope.OWN:
            return EffectiveScope(scope=ViewScope.OWN, viewer_id=viewer.user_id, owner_id=viewer.user_id)
        if requested_scope == ViewScope.TEAM and viewer.department_id is not None:
            return EffectiveScope(scope=ViewScope.TEAM, viewer_id=viewer.user_id, department_id=viewer.department_id)
        return EffectiveScope(scope=ViewScope.ALL, viewer_id=viewer.user_id)

    scope = requested_scope if requested_scope is not None else _scope_from_settings(viewer, settings)
    if scope == ViewScope.TEAM and viewer.department_id is None:
        scope = ViewScope.OWN

    if scope == ViewScope.OWN:
        return EffectiveScope(scope=ViewScope.OWN, viewer_id=viewer.user_id, owner_id=viewer.user_id)
    if scope == ViewScope.TEAM:
        return EffectiveScope(
            scope=ViewScope.TEAM,
            viewer_id=viewer.user_id,
            department_id=viewer.department_id,
            approved_only_for_others=True,
        )
    return EffectiveScope(scope=ViewScope.ALL, viewer_id=viewer.user_id, approved_only_for_others=True)


def project_holiday(
    request: HolidayRequest,
    viewer: AuthContext,
    owner: User | None = None,
    department: Department | None = None,
    approver: User | None = None,
) -> HolidayResponse:
    """Shape a visible request for the viewer.

    Admins see everything. Other viewers see their own email but never the
    email of another owner or of the approver.
    """
    full_detail = viewer.is_admin

    owner_summary = None
    if owner is not None:
        owner_summary = HolidayOwner(
            id=owner.id,
            name=owner.name,
            email=owner.email if full_detail or owner.id == viewer.user_id else None,
            department=(
                DepartmentSummary(id=department.id, name=department.name, location=department.location)
                if department is not None
                else None
            ),
        )

    approver_summary = None
    if approver is not None:
        approver_summary = ApproverSummary(
            id=approver.id,
            name=approver.name,
            email=approver.email if full_detail else None,
        )

    return HolidayResponse(
        id=request.id,
        user_id=request.user_id,
        user=owner_summary,
        start_date=request.start_date,
        end_date=request.end_date,
        type=request.type,
        status=request.status,
        working_days=request.working_days,
        notes=request.notes,
        approved_by=request.approved_by,
        approver=approver_summary,
        approved_at=request.approved_at,
        rejection_reason=request.rejection_reason,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )
