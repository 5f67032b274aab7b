"""Scheduling routes and the dispatch trigger.

GET /posts/scheduled must be registered before the /posts/{post_id}
routes, so this router is included ahead of the posts router.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.auth.dependencies import CurrentUser, get_current_user
from api.dependencies import get_scheduler_service, require_scheduler_secret
from api.services.scheduler_service import SchedulerService
from postpilot.db.models import PostRead

router = APIRouter(tags=["scheduling"])


class ScheduleRequest(BaseModel):
    scheduled_at: datetime
    platforms: Optional[list[str]] = Field(default=None, min_length=1)


class RescheduleRequest(BaseModel):
    scheduled_at: datetime


@router.get("/posts/scheduled", response_model=list[PostRead])
async def get_scheduled_posts(
    current_user: CurrentUser = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    posts = await service.get_scheduled_posts(current_user.user_id)
    return [PostRead.model_validate(p) for p in posts]


@router.post("/posts/{post_id}/schedule", response_model=PostRead)
async def schedule_post(
    post_id: UUID,
    body: ScheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    post = await service.schedule_post(
        current_user.user_id, post_id, body.scheduled_at, body.platforms
    )
    return PostRead.model_validate(post)


@router.put("/posts/{post_id}/schedule", response_model=PostRead)
async def reschedule_post(
    post_id: UUID,
    body: RescheduleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    post = await service.reschedule_post(current_user.user_id, post_id, body.scheduled_at)
    return PostRead.model_validate(post)


@router.delete("/posts/{post_id}/schedule", response_model=PostRead)
async def cancel_scheduled_post(
    post_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    post = await service.cancel_scheduled_post(current_user.user_id, post_id)
    return PostRead.model_validate(post)


@router.post("/scheduler/process", dependencies=[Depends(require_scheduler_secret)])
async def process_scheduled_posts(
    service: SchedulerService = Depends(get_scheduler_service),
) -> dict:
    """Dispatch due posts. Called by the external cron/automation."""
    outcomes = await service.process_scheduled_posts()
    return {
        "processed": len(outcomes),
        "results": [outcome.to_dict() for outcome in outcomes],
    }
