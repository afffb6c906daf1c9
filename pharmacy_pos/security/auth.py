"""
Bearer-token authentication and role checks.

Resolves the acting user from the ``Authorization`` header and looks up
their roles (``admin``, ``pharmacist``, ``staff``) in the roles collection.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Header, HTTPException

from ..core.config import Settings, get_settings
from ..core.identity import (
    IdentityProvider,
    JWTIdentityProvider,
    StaticIdentityProvider,
    SupabaseAuthIdentityProvider,
)
from ..database.record_store import Filter, RecordStore, RecordStoreError
from ..dependencies import get_record_store

logger = logging.getLogger(__name__)

ROLES = ("admin", "pharmacist", "staff")


@dataclass
class AuthenticatedUser:
    """The caller of a request"""
    user_id: str
    roles: list[str] = field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer ...`` header"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_identity_provider(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> IdentityProvider:
    """Pick an identity provider for the request's bearer token"""
    token = extract_bearer_token(authorization)

    if settings.supabase_jwt_secret:
        return JWTIdentityProvider(token, settings.supabase_jwt_secret, settings.jwt_audience)

    if settings.supabase_configured:
        return SupabaseAuthIdentityProvider(
            token,
            auth_url=settings.auth_url,
            api_key=settings.supabase_key,
            timeout=settings.request_timeout,
        )

    logger.warning("No auth backend configured - all requests are anonymous")
    return StaticIdentityProvider(None)


async def fetch_roles(store: RecordStore, collection: str, user_id: str) -> list[str]:
    """Roles granted to a user; an unreadable roles table grants none"""
    try:
        rows = await store.select(collection, [Filter("user_id", "eq", user_id)])
    except RecordStoreError as e:
        logger.error(f"Error fetching roles for {user_id}: {e}")
        return []
    return [row["role"] for row in rows if row.get("role") in ROLES]


class AuthDependency:
    """
    FastAPI dependency that requires a signed-in user.

    Use ``required_roles`` to restrict an endpoint to users holding at least
    one of the given roles.
    """

    def __init__(self, required_roles: tuple[str, ...] = ()):
        self.required_roles = required_roles

    async def __call__(
        self,
        identity: IdentityProvider = Depends(get_identity_provider),
        store: RecordStore = Depends(get_record_store),
        settings: Settings = Depends(get_settings),
    ) -> AuthenticatedUser:
        user_id = await identity.current_user_id()
        if not user_id:
            raise HTTPException(
                status_code=401,
                detail={"code": "not_authenticated", "message": "Please log in to continue"},
            )

        user = AuthenticatedUser(
            user_id=user_id,
            roles=await fetch_roles(store, settings.roles_collection, user_id),
        )
        if self.required_roles and not any(user.has_role(r) for r in self.required_roles):
            logger.warning(f"User {user_id} lacks roles {self.required_roles} (has {user.roles})")
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "You do not have access to this resource"},
            )

        return user


# Dependency instances
require_user = AuthDependency()
require_manager = AuthDependency(required_roles=("admin", "pharmacist"))
