# ruff: noqa: B008, TC001
from __future__ import annotations

from fastapi import APIRouter, Query

from vacation_portal.api.deps import AuthDep, ManagerDep
from vacation_portal.db import SessionDep
from vacation_portal.models.enums import AuditAction, AuditEntityType
from vacation_portal.schemas.analytics import AnalyticsResponse, AuditLogListResponse
from vacation_portal.services import analytics as analytics_service
from vacation_portal.services import audit as audit_service

analytics_router = APIRouter(tags=["analytics"])


@analytics_router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(session: SessionDep, auth: AuthDep) -> AnalyticsResponse:
    """Dashboard aggregates over all requests and accounts (manager only)."""
    return await analytics_service.get_analytics(session, auth)


@analytics_router.get("/audit-log", response_model=AuditLogListResponse)
async def query_audit_log(
    session: SessionDep,
    auth: ManagerDep,
    entity_type: AuditEntityType | None = Query(default=None),
    entity_id: int | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    actor_id: int | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (manager only)."""
    return await audit_service.query_audit_log(
        session,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        action=action.value if action else None,
        actor_id=actor_id,
        offset=offset,
        limit=limit,
    )
