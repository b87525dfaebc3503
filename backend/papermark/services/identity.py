"""Caller identity: sign-in exchange, session lookup and user upsert."""

import logging
from datetime import timezone
from typing import Any, Dict, Optional, Tuple

import httpx

from ..db.repositories import UserRepository
from ..errors import AuthenticationError, UpstreamError
from ..models import User
from ..utils import utcnow

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Turns a verified sign-in into a session and resolves session tokens
    back into users.

    The auth service at `auth_service_url` is given the client's session_id
    in an X-Session-ID header and answers with the identity behind it
    ({"id" or "sub", "name", "email"}).
    """

    def __init__(
        self,
        users: UserRepository,
        owner_open_id: Optional[str] = None,
        session_ttl_days: int = 365,
        auth_service_url: str = "",
        auth_timeout: float = 10,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.users = users
        self.owner_open_id = owner_open_id
        self.session_ttl_days = session_ttl_days
        self.auth_service_url = auth_service_url
        self.auth_timeout = auth_timeout
        self.http_client = http_client

    async def _verify(self, client: httpx.AsyncClient, session_id: str) -> Dict[str, Any]:
        try:
            auth_response = await client.get(
                self.auth_service_url,
                headers={"X-Session-ID": session_id}
            )
        except httpx.HTTPError as e:
            logger.error(f"Auth service error: {e}")
            raise UpstreamError("Auth service error") from e

        if auth_response.status_code != 200:
            raise AuthenticationError("Invalid session_id")
        try:
            return auth_response.json()
        except ValueError as e:
            raise UpstreamError("Auth service error") from e

    async def exchange(self, session_id: str) -> Tuple[str, User]:
        """
        Verify a sign-in session_id with the auth service, upsert the user
        and open a session.

        Raises:
            AuthenticationError: Missing or rejected session_id
            UpstreamError: Auth service unreachable, unconfigured or malformed
        """
        if not session_id:
            raise AuthenticationError("session_id required")
        if not self.auth_service_url:
            raise UpstreamError("Auth service is not configured")

        if self.http_client is not None:
            auth_data = await self._verify(self.http_client, session_id)
        else:
            async with httpx.AsyncClient(timeout=self.auth_timeout) as client:
                auth_data = await self._verify(client, session_id)

        open_id = auth_data.get("id") or auth_data.get("sub")
        if not open_id:
            raise UpstreamError("Auth service returned no user id")

        session_token = await self.sign_in(
            str(open_id),
            name=auth_data.get("name"),
            email=auth_data.get("email"),
            login_method=auth_data.get("login_method") or "oauth"
        )
        user = await self.users.get_by_open_id(str(open_id))
        logger.info(f"🔑 User {user.id} signed in")
        return session_token, user

    async def sign_in(
        self,
        open_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        login_method: Optional[str] = None
    ) -> str:
        """Upsert a verified identity and open a session. Returns the session token."""
        user = await self.users.upsert(
            open_id,
            name=name,
            email=email,
            login_method=login_method,
            owner_open_id=self.owner_open_id
        )
        return await self.users.create_session(user.id, self.session_ttl_days)

    async def resolve(self, session_token: Optional[str]) -> Optional[User]:
        """User behind a session token, or None for a missing/expired session."""
        if not session_token:
            return None

        session = await self.users.get_session(session_token)
        if not session:
            return None

        expires_at = session.get("expires_at")
        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at < utcnow():
                logger.info(f"Session for user {session['user_id']} expired")
                return None

        user = await self.users.get(session["user_id"])
        if user:
            await self.users.touch(user.id)
        return user

    async def sign_out(self, session_token: Optional[str]) -> bool:
        if not session_token:
            return False
        return await self.users.delete_session(session_token)
