"""
Identity providers.

Supply the acting user's id for sale attribution. The sale manager receives
one of these explicitly instead of reading session state from module scope.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import jwt

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """Source of the current user's id"""

    @abstractmethod
    async def current_user_id(self) -> Optional[str]:
        """Return the acting user's id, or None when nobody is signed in"""


class StaticIdentityProvider(IdentityProvider):
    """Always reports the same user (or nobody)"""

    def __init__(self, user_id: Optional[str]):
        self.user_id = user_id

    async def current_user_id(self) -> Optional[str]:
        return self.user_id


class JWTIdentityProvider(IdentityProvider):
    """
    Reads the user id from a Supabase access token verified locally.

    Supabase signs access tokens with the project's JWT secret (HS256) and
    puts the user id in ``sub``.
    """

    def __init__(self, token: Optional[str], secret: str, audience: str = "authenticated"):
        self.token = token
        self._secret = secret
        self._audience = audience

    async def current_user_id(self) -> Optional[str]:
        if not self.token:
            return None
        try:
            claims = jwt.decode(
                self.token,
                self._secret,
                algorithms=["HS256"],
                audience=self._audience,
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected access token: {e}")
            return None
        return claims.get("sub")


class SupabaseAuthIdentityProvider(IdentityProvider):
    """Asks the Supabase auth API who owns the access token"""

    def __init__(
        self,
        token: Optional[str],
        auth_url: str,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.token = token
        self.auth_url = auth_url.rstrip("/")
        self._api_key = api_key
        self._http_client = http_client
        self._timeout = timeout

    async def current_user_id(self) -> Optional[str]:
        if not self.token:
            return None

        headers = {"apikey": self._api_key, "Authorization": f"Bearer {self.token}"}
        client = self._http_client or httpx.AsyncClient(timeout=self._timeout)
        try:
            response = await client.get(f"{self.auth_url}/user", headers=headers)
        except httpx.TransportError as e:
            logger.error(f"Auth service unreachable: {e!r}")
            return None
        finally:
            if self._http_client is None:
                await client.aclose()

        if response.status_code != 200:
            logger.warning(f"Auth lookup failed: {response.status_code}")
            return None
        return response.json().get("id")
