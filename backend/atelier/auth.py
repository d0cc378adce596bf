"""Sign-in through an external identity provider and server-side sessions.

The provider's userinfo endpoint identifies the user; the profile is mirrored
into ``users/{uid}`` with a non-blocking merge write and a session record is
kept under ``sessions/{jti}`` for as long as the issued token is valid.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import httpx
import jwt

from atelier import crud
from atelier.core import security
from atelier.core.config import settings
from atelier.errors import AuthenticationFailed
from atelier.models import AuthContext, Token, UserProfile
from atelier.store import DocumentStore, PendingWrite
from atelier.store import paths

logger = logging.getLogger(__name__)


class IdentityProvider:
    """OpenID Connect style userinfo lookup."""

    def __init__(
        self,
        userinfo_url: str | None = None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.userinfo_url = userinfo_url or settings.IDENTITY_USERINFO_URL
        self.timeout = timeout
        self.transport = transport

    async def fetch_profile(self, access_token: str) -> UserProfile:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    self.userinfo_url, headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as exc:
            logger.error("Identity provider request failed: %s", exc)
            raise AuthenticationFailed("Could not reach the identity provider") from exc

        if response.status_code != 200:
            logger.warning("Identity provider rejected the token (status %s)", response.status_code)
            raise AuthenticationFailed("The identity provider rejected the credentials")

        payload = response.json()
        user_id = payload.get("sub") or payload.get("id") or payload.get("uid")
        if not user_id:
            raise AuthenticationFailed("The identity provider did not return a user id")
        return UserProfile(
            id=str(user_id),
            display_name=payload.get("name") or payload.get("display_name"),
            email=payload.get("email") or None,
            photo_url=payload.get("picture") or payload.get("photo_url"),
        )


@dataclass
class SignIn:
    token: Token
    user: UserProfile
    profile_write: PendingWrite


class AuthGate:
    def __init__(self, *, store: DocumentStore, provider: IdentityProvider | None = None):
        self.store = store
        self.provider = provider or IdentityProvider()

    async def sign_in(self, provider_access_token: str) -> SignIn:
        profile = await self.provider.fetch_profile(provider_access_token)
        profile_write = crud.upsert_user_profile_nowait(store=self.store, profile=profile)

        session_id = uuid.uuid4().hex
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        expires_at = datetime.now(timezone.utc) + expires_delta
        await asyncio.to_thread(
            self.store.set,
            paths.session_path(session_id),
            {"user_id": profile.id, "expires_at": expires_at.isoformat()},
        )
        token = security.create_access_token(profile.id, expires_delta, token_id=session_id)
        logger.info("User %s signed in", profile.id)
        return SignIn(token=Token(access_token=token), user=profile, profile_write=profile_write)

    async def sign_out(self, token: str) -> None:
        try:
            payload = security.decode_access_token(token, verify_exp=False)
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Could not validate credentials") from exc
        if payload.jti:
            await asyncio.to_thread(self.store.delete, paths.session_path(payload.jti))
        logger.info("User %s signed out", payload.sub)

    async def resolve(self, token: str | None) -> AuthContext:
        """Auth context for a bearer token; anonymous when there is none."""
        if not token:
            return AuthContext()
        try:
            payload = security.decode_access_token(token)
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Could not validate credentials") from exc
        if not payload.sub or not payload.jti:
            raise AuthenticationFailed("Could not validate credentials")

        session = await asyncio.to_thread(self.store.get, paths.session_path(payload.jti))
        if session is None or session.data.get("user_id") != payload.sub:
            raise AuthenticationFailed("Session has ended")

        profile = await asyncio.to_thread(crud.get_user_profile, store=self.store, user_id=payload.sub)
        # The profile mirror is written in the background and may still be in flight.
        return AuthContext(current_user=profile or UserProfile(id=payload.sub))
