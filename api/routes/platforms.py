"""Platform connection routes (OAuth connect/disconnect)."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.auth.dependencies import CurrentUser, get_current_user
from api.dependencies import get_platform_service
from api.exceptions import ValidationError
from api.services.platform_service import PlatformConnectionService
from postpilot.db.models import PlatformConnectionRead, SocialPlatform

router = APIRouter(prefix="/platforms", tags=["platforms"])


class CallbackRequest(BaseModel):
    """OAuth callback parameters relayed by the client.

    LinkedIn sends code and state; Twitter sends oauth_token and oauth_verifier.
    """

    code: Optional[str] = None
    state: Optional[str] = None
    oauth_token: Optional[str] = None
    oauth_verifier: Optional[str] = None


@router.get("/status", response_model=dict[str, PlatformConnectionRead])
async def get_status(
    current_user: CurrentUser = Depends(get_current_user),
    service: PlatformConnectionService = Depends(get_platform_service),
):
    return await service.get_status(current_user.user_id)


@router.get("/auth/{platform}")
async def get_authorization_url(
    platform: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: PlatformConnectionService = Depends(get_platform_service),
) -> dict:
    url = await service.get_authorization_url(current_user.user_id, platform)
    return {"url": url}


@router.post("/callback/{platform}", response_model=PlatformConnectionRead)
async def complete_connection(
    platform: str,
    body: CallbackRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PlatformConnectionService = Depends(get_platform_service),
):
    if platform.lower() == SocialPlatform.twitter.value:
        code, state, verifier = body.oauth_token, body.oauth_token, body.oauth_verifier
    else:
        code, state, verifier = body.code, body.state, None
    if not code or not state:
        raise ValidationError("Missing OAuth callback parameters")

    connection = await service.complete_connection(
        current_user.user_id, platform, code=code, state=state, verifier=verifier
    )
    return PlatformConnectionRead.model_validate(connection, from_attributes=True)


@router.delete("/disconnect/{platform}", response_model=PlatformConnectionRead)
async def disconnect(
    platform: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: PlatformConnectionService = Depends(get_platform_service),
):
    connection = await service.disconnect(current_user.user_id, platform)
    return PlatformConnectionRead.model_validate(connection, from_attributes=True)
