"""Post routes: enhance, publish, history and stats."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from api.auth.dependencies import CurrentUser, get_current_user
from api.dependencies import get_post_service
from api.services.post_service import PostService
from postpilot.db.models import PostRead, PostStatus

router = APIRouter(prefix="/posts", tags=["posts"])


# =============================================================================
# Request/Response Models
# =============================================================================


class EnhanceRequest(BaseModel):
    content: str = Field(..., min_length=10, max_length=5000)
    platforms: list[str] = Field(..., min_length=1)


class VariationsRequest(EnhanceRequest):
    count: int = Field(default=3, ge=1, le=5)


class PublishRequest(BaseModel):
    """Publish an existing post, raw content, or a post with overriding text."""

    post_id: Optional[UUID] = None
    content: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    platforms: Optional[list[str]] = Field(default=None, min_length=1)


class PublishResponse(BaseModel):
    success: bool
    via: str
    results: dict[str, dict]
    post: Optional[PostRead] = None


class PostListResponse(BaseModel):
    posts: list[PostRead]
    next_cursor: Optional[datetime] = None


# =============================================================================
# Routes
# =============================================================================


@router.post("/enhance", response_model=PostRead, status_code=status.HTTP_201_CREATED)
async def enhance_post(
    body: EnhanceRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    """Create a post and enhance it with AI."""
    post = await service.enhance_post(current_user.user_id, body.content, body.platforms)
    return PostRead.model_validate(post)


@router.post("/variations")
async def generate_variations(
    body: VariationsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> dict:
    variations = await service.generate_variations(body.content, body.platforms, body.count)
    return {"variations": variations}


@router.post("/publish", response_model=PublishResponse)
async def publish_post(
    body: PublishRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    """Publish now to the requested platforms."""
    outcome = await service.publish_post(
        current_user.user_id,
        platforms=body.platforms,
        post_id=body.post_id,
        content=body.content,
    )
    return PublishResponse(
        success=outcome.success,
        via=outcome.via,
        results=outcome.results,
        post=PostRead.model_validate(outcome.post) if outcome.post else None,
    )


@router.get("", response_model=PostListResponse)
async def list_posts(
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[PostStatus] = Query(None, alias="status"),
    before: Optional[datetime] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    """Post history, newest first. Pass next_cursor back as before."""
    history = await service.get_post_history(
        current_user.user_id, limit=limit, status=status_filter, before=before
    )
    return PostListResponse(
        posts=[PostRead.model_validate(p) for p in history.posts],
        next_cursor=history.next_cursor,
    )


@router.get("/stats")
async def get_stats(
    current_user: CurrentUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> dict:
    return await service.get_stats(current_user.user_id)


@router.get("/{post_id}", response_model=PostRead)
async def get_post(
    post_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    post = await service.get_post(current_user.user_id, post_id)
    return PostRead.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> None:
    await service.delete_post(current_user.user_id, post_id)
