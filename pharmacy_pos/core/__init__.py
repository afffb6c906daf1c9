# Core modules

from .config import settings, get_settings, Settings
from .identity import (
    IdentityProvider,
    StaticIdentityProvider,
    JWTIdentityProvider,
    SupabaseAuthIdentityProvider,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "IdentityProvider",
    "StaticIdentityProvider",
    "JWTIdentityProvider",
    "SupabaseAuthIdentityProvider",
]
