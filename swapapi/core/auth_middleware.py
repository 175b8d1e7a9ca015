from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from swapapi.config import settings
from swapapi.core.exceptions import AuthenticationError
from swapapi.core.security import decode_access_token
from swapapi.models.user import UserRole
from swapapi.schemas.common import Actor

# JWT Bearer token scheme
security = HTTPBearer(auto_error=False)


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """Resolve the bearer token into the caller identity"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return decode_access_token(credentials.credentials, settings)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_roles(*roles: UserRole):
    """Dependency factory gating an endpoint to the given roles"""
    allowed = {UserRole(r) for r in roles}

    def _require_roles(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(sorted(r.value for r in allowed))}",
            )
        return actor

    return _require_roles


require_driver = require_roles(UserRole.DRIVER)
require_staff = require_roles(UserRole.STAFF, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)
