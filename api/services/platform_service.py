"""Platform connection service.

Connect and disconnect LinkedIn and Twitter accounts. The pending
authorization (LinkedIn state nonce, or Twitter request token and its
secret) is stored on the user's connection row until the callback.
"""

import secrets
from typing import Optional
from uuid import UUID

from api.exceptions import ExternalServiceError, NotFoundError, ValidationError
from api.services.social_service import PlatformClient, PlatformClientRegistry, PlatformError
from postpilot.content.repository import PlatformConnectionRepository, UserRepository
from postpilot.db.models import (
    PlatformConnection,
    PlatformConnectionRead,
    PlatformConnectionUpsert,
    SocialPlatform,
)
from postpilot.logging import get_logger

logger = get_logger(__name__)


class PlatformConnectionService:
    """OAuth connection management for social platforms."""

    def __init__(
        self,
        connections: PlatformConnectionRepository,
        users: UserRepository,
        platform_clients: PlatformClientRegistry,
    ):
        self.connections = connections
        self.users = users
        self.platform_clients = platform_clients

    def _client(self, platform: str) -> PlatformClient:
        try:
            name = SocialPlatform(str(platform).lower())
        except ValueError as e:
            raise ValidationError(f"Unsupported platform: {platform}") from e
        if name not in self.platform_clients:
            raise ValidationError(f"Unsupported platform: {platform}")
        return self.platform_clients.get(name)

    async def get_status(self, user_id: UUID) -> dict[str, PlatformConnectionRead]:
        """Connection state for every supported platform."""
        rows = {
            SocialPlatform(row.platform).value: row
            for row in self.connections.list_by_user(user_id)
        }
        status = {}
        for name in self.platform_clients.platforms:
            row = rows.get(name)
            if row is None:
                status[name] = PlatformConnectionRead(platform=name, connected=False)
            else:
                status[name] = PlatformConnectionRead.model_validate(row, from_attributes=True)
        return status

    async def get_authorization_url(self, user_id: UUID, platform: str) -> str:
        """Start an OAuth flow and return the URL to send the user to."""
        client = self._client(platform)
        try:
            request = await client.get_authorization_url(secrets.token_urlsafe(24))
        except PlatformError as e:
            raise ExternalServiceError(
                f"Could not start {client.name} authorization",
                details={"platform": client.name, "error": e.detail},
            ) from e

        self.connections.set_pending_authorization(
            user_id, client.platform, request.state, request.request_secret
        )
        logger.info("oauth_started", platform=client.name)
        return request.url

    async def complete_connection(
        self,
        user_id: UUID,
        platform: str,
        code: str,
        state: str,
        verifier: Optional[str] = None,
    ) -> PlatformConnection:
        """Finish an OAuth flow: exchange, load profile, store the connection.

        Args:
            code: LinkedIn authorization code, or Twitter oauth_token
            state: LinkedIn state, or Twitter oauth_token
            verifier: Twitter oauth_verifier
        """
        client = self._client(platform)
        pending = self.connections.get_by_platform(user_id, client.platform)
        if pending is None or not pending.oauth_state or not secrets.compare_digest(
            pending.oauth_state, state or ""
        ):
            raise ValidationError("Invalid or expired authorization state")

        try:
            tokens = await client.exchange_code(code, verifier, pending.oauth_request_secret)
            profile = await client.fetch_profile(tokens)
        except PlatformError as e:
            raise ExternalServiceError(
                f"Could not connect {client.name}",
                details={"platform": client.name, "error": e.detail},
            ) from e

        connection = self.connections.upsert(
            user_id,
            client.platform,
            PlatformConnectionUpsert(
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                expires_at=tokens.expires_at,
                profile_id=profile.id or tokens.profile_id,
                profile_name=profile.name,
                profile_username=profile.username or tokens.profile_username,
                avatar_url=profile.avatar_url,
            ),
        )
        self.users.set_platform_connected(user_id, client.platform, True)
        logger.info("platform_connected", platform=client.name, profile_id=connection.profile_id)
        return connection

    async def disconnect(self, user_id: UUID, platform: str) -> PlatformConnection:
        """Clear tokens and mark the platform disconnected."""
        client = self._client(platform)
        connection = self.connections.disconnect(user_id, client.platform)
        if connection is None:
            raise NotFoundError(
                f"{client.name} is not connected",
                details={"platform": client.name},
            )
        self.users.set_platform_connected(user_id, client.platform, False)
        logger.info("platform_disconnected", platform=client.name)
        return connection
