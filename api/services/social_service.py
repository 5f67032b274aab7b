"""Social media platform clients for OAuth and publishing.

Handles OAuth flows and content publishing for LinkedIn and Twitter (X).
Every client exposes the same surface so callers dispatch through
PlatformClientRegistry instead of branching on platform names.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional
from urllib.parse import urlencode

import httpx
from authlib.integrations.httpx_client import AsyncOAuth1Client

from postpilot.config import PLATFORM_TIMEOUT_SECONDS
from postpilot.db.models import SocialPlatform, utcnow
from postpilot.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Results and errors
# =============================================================================


@dataclass
class AuthorizationRequest:
    """Where to send the user, plus what to remember until the callback."""

    url: str
    state: str
    request_secret: Optional[str] = None


@dataclass
class PlatformTokens:
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    profile_id: Optional[str] = None
    profile_username: Optional[str] = None


@dataclass
class PlatformProfile:
    id: Optional[str]
    name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass
class PublishedPost:
    post_id: str
    post_url: str


class PlatformError(Exception):
    """A platform API call failed."""

    def __init__(self, platform: str, detail: str):
        self.platform = platform
        self.detail = detail
        super().__init__(f"{platform}: {detail}")


class PlatformPublishError(PlatformError):
    """Publishing to a platform failed."""


def _describe(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "Request timed out"
    if isinstance(exc, httpx.HTTPStatusError):
        body = exc.response.text[:500]
        return f"HTTP {exc.response.status_code}: {body}" if body else f"HTTP {exc.response.status_code}"
    return str(exc) or exc.__class__.__name__


# =============================================================================
# Base client
# =============================================================================


class PlatformClient(ABC):
    """OAuth and publishing for one platform."""

    platform: SocialPlatform

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = PLATFORM_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.transport = transport

    @property
    def name(self) -> str:
        return self.platform.value

    @abstractmethod
    async def get_authorization_url(self, state: str) -> AuthorizationRequest:
        """Start an authorization; state is used where the protocol allows."""

    @abstractmethod
    async def exchange_code(
        self,
        code: str,
        verifier: Optional[str] = None,
        request_secret: Optional[str] = None,
    ) -> PlatformTokens:
        """Trade the callback parameters for tokens."""

    @abstractmethod
    async def fetch_profile(self, tokens: PlatformTokens) -> PlatformProfile:
        """Load the connected account's profile."""

    @abstractmethod
    async def publish(self, credentials: dict, text: str) -> PublishedPost:
        """Publish text using a credential bundle.

        Raises:
            PlatformPublishError: with the platform's error detail
        """


# =============================================================================
# LinkedIn
# =============================================================================


class LinkedInClient(PlatformClient):
    """LinkedIn OAuth 2.0 and publishing client."""

    platform = SocialPlatform.linkedin

    AUTH_URL = "https://www.linkedin.com/oauth/v2/authorization"
    TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
    API_URL = "https://api.linkedin.com/v2"
    SCOPE = "openid profile w_member_social email"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def get_authorization_url(self, state: str) -> AuthorizationRequest:
        """Generate LinkedIn OAuth authorization URL."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
            "scope": self.SCOPE,
        }
        return AuthorizationRequest(url=f"{self.AUTH_URL}?{urlencode(params)}", state=state)

    async def exchange_code(
        self,
        code: str,
        verifier: Optional[str] = None,
        request_secret: Optional[str] = None,
    ) -> PlatformTokens:
        """Exchange authorization code for access token."""
        try:
            async with self._client() as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    },
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise PlatformError(self.name, _describe(e)) from e

        expires_in = data.get("expires_in")
        return PlatformTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=utcnow() + timedelta(seconds=int(expires_in)) if expires_in else None,
        )

    async def fetch_profile(self, tokens: PlatformTokens) -> PlatformProfile:
        """Get user profile from the OpenID Connect userinfo endpoint."""
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.API_URL}/userinfo",
                    headers={"Authorization": f"Bearer {tokens.access_token}"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise PlatformError(self.name, _describe(e)) from e

        name = " ".join(
            part for part in (data.get("given_name"), data.get("family_name")) if part
        ) or data.get("name")
        email = data.get("email") or ""
        return PlatformProfile(
            id=data.get("sub"),
            name=name,
            username=email.split("@")[0] or None,
            avatar_url=data.get("picture"),
        )

    async def publish(self, credentials: dict, text: str) -> PublishedPost:
        """Publish a post as the connected member."""
        payload = {
            "author": f"urn:li:person:{credentials.get('profileId')}",
            "lifecycleState": "PUBLISHED",
            "specificContent": {
                "com.linkedin.ugc.ShareContent": {
                    "shareCommentary": {"text": text},
                    "shareMediaCategory": "NONE",
                }
            },
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.API_URL}/ugcPosts",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {credentials.get('accessToken')}",
                        "Content-Type": "application/json",
                        "X-Restli-Protocol-Version": "2.0.0",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise PlatformPublishError(self.name, _describe(e)) from e

        post_id = response.headers.get("x-restli-id") or response.json().get("id", "")
        logger.info("platform_published", platform=self.name, post_id=post_id)
        return PublishedPost(
            post_id=post_id,
            post_url=f"https://www.linkedin.com/feed/update/{post_id}",
        )


# =============================================================================
# Twitter (X)
# =============================================================================


class TwitterClient(PlatformClient):
    """Twitter OAuth 1.0a and publishing client.

    The connection's refresh_token slot holds the OAuth 1.0a token secret.
    """

    platform = SocialPlatform.twitter

    REQUEST_TOKEN_URL = "https://api.twitter.com/oauth/request_token"
    AUTH_URL = "https://api.twitter.com/oauth/authenticate"
    ACCESS_TOKEN_URL = "https://api.twitter.com/oauth/access_token"
    API_URL = "https://api.twitter.com/2"

    def _client(
        self,
        token: Optional[str] = None,
        token_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
    ) -> AsyncOAuth1Client:
        kwargs = {"timeout": self.timeout}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return AsyncOAuth1Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            token=token,
            token_secret=token_secret,
            redirect_uri=redirect_uri,
            **kwargs,
        )

    async def get_authorization_url(self, state: str) -> AuthorizationRequest:
        """Fetch a request token; the token itself becomes the state."""
        try:
            async with self._client(redirect_uri=self.redirect_uri) as client:
                request_token = await client.fetch_request_token(self.REQUEST_TOKEN_URL)
        except httpx.HTTPError as e:
            raise PlatformError(self.name, _describe(e)) from e

        oauth_token = request_token["oauth_token"]
        return AuthorizationRequest(
            url=f"{self.AUTH_URL}?oauth_token={oauth_token}",
            state=oauth_token,
            request_secret=request_token["oauth_token_secret"],
        )

    async def exchange_code(
        self,
        code: str,
        verifier: Optional[str] = None,
        request_secret: Optional[str] = None,
    ) -> PlatformTokens:
        """Exchange the request token and verifier for an access token.

        Args:
            code: The oauth_token returned on the callback
            verifier: The oauth_verifier returned on the callback
            request_secret: Secret stored when the request token was issued
        """
        if not verifier:
            raise PlatformError(self.name, "Missing oauth_verifier")
        try:
            async with self._client(token=code, token_secret=request_secret) as client:
                token = await client.fetch_access_token(self.ACCESS_TOKEN_URL, verifier=verifier)
        except httpx.HTTPError as e:
            raise PlatformError(self.name, _describe(e)) from e

        return PlatformTokens(
            access_token=token["oauth_token"],
            refresh_token=token["oauth_token_secret"],
            profile_id=token.get("user_id"),
            profile_username=token.get("screen_name"),
        )

    async def fetch_profile(self, tokens: PlatformTokens) -> PlatformProfile:
        """Get user profile from the v2 users/me endpoint."""
        try:
            async with self._client(tokens.access_token, tokens.refresh_token) as client:
                response = await client.get(
                    f"{self.API_URL}/users/me",
                    params={"user.fields": "id,name,username,profile_image_url"},
                )
                response.raise_for_status()
                data = response.json().get("data", {})
        except httpx.HTTPError as e:
            raise PlatformError(self.name, _describe(e)) from e

        return PlatformProfile(
            id=data.get("id") or tokens.profile_id,
            name=data.get("name"),
            username=data.get("username") or tokens.profile_username,
            avatar_url=data.get("profile_image_url"),
        )

    async def publish(self, credentials: dict, text: str) -> PublishedPost:
        """Publish a tweet."""
        try:
            async with self._client(
                credentials.get("accessToken"), credentials.get("refreshToken")
            ) as client:
                response = await client.post(f"{self.API_URL}/tweets", json={"text": text})
                response.raise_for_status()
                data = response.json().get("data", {})
        except httpx.HTTPError as e:
            raise PlatformPublishError(self.name, _describe(e)) from e

        tweet_id = str(data.get("id", ""))
        logger.info("platform_published", platform=self.name, post_id=tweet_id)
        return PublishedPost(
            post_id=tweet_id,
            post_url=f"https://twitter.com/user/status/{tweet_id}",
        )


# =============================================================================
# Registry
# =============================================================================


class PlatformClientRegistry:
    """Maps platform name to its client."""

    def __init__(self, clients: Iterable[PlatformClient] = ()):
        self._clients: dict[str, PlatformClient] = {}
        for client in clients:
            self.register(client)

    def register(self, client: PlatformClient) -> None:
        self._clients[client.name] = client

    def get(self, platform: str) -> PlatformClient:
        """Return the client for a platform.

        Raises:
            KeyError: No client registered for the platform
        """
        name = platform.value if isinstance(platform, SocialPlatform) else str(platform).lower()
        return self._clients[name]

    def __contains__(self, platform: object) -> bool:
        name = platform.value if isinstance(platform, SocialPlatform) else str(platform).lower()
        return name in self._clients

    @property
    def platforms(self) -> list[str]:
        return list(self._clients)
