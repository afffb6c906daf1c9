from .auth import (
    AuthenticatedUser,
    AuthDependency,
    get_identity_provider,
    require_user,
    require_manager,
)

__all__ = [
    "AuthenticatedUser",
    "AuthDependency",
    "get_identity_provider",
    "require_user",
    "require_manager",
]
