"""
Activity log router.

Any staff member can append events for themselves (clock-in, declared
tips, ...). Reading the log is a manager task.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.repositories import ActivityLogFilters
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import ActivityLogService
from shared.config.constants import LogEvent, Role
from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context, require_role
from shared.utils.schemas import ActivityLogCreate, ActivityLogOut


router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.post("", response_model=ActivityLogOut, status_code=status.HTTP_201_CREATED)
def append_log(
    body: ActivityLogCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ActivityLogOut:
    entry = ActivityLogService(db).append(
        actor_id(ctx),
        body.event,
        entity_id=body.entity_id,
        declared_tips_cents=body.declared_tips_cents,
    )
    return ActivityLogOut.model_validate(entry)


@router.get("", response_model=list[ActivityLogOut])
def list_logs(
    user_id: int | None = None,
    event: LogEvent | None = None,
    entity_id: int | None = None,
    before: datetime | None = None,
    after: datetime | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[ActivityLogOut]:
    require_role(ctx, Role.MANAGER)
    filters = ActivityLogFilters(
        **pagination.as_filters(),
        user_id=user_id,
        event=event,
        entity_id=entity_id,
        before=before,
        after=after,
        start=start,
        end=end,
    )
    return [ActivityLogOut.model_validate(e) for e in ActivityLogService(db).find(filters)]


@router.get("/{log_id}", response_model=ActivityLogOut)
def get_log(
    log_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ActivityLogOut:
    require_role(ctx, Role.MANAGER)
    return ActivityLogOut.model_validate(ActivityLogService(db).get(log_id))
