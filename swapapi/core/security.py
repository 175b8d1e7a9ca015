from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from swapapi.config import Settings
from swapapi.core.exceptions import AuthenticationError
from swapapi.models.user import UserRole
from swapapi.schemas.common import Actor


class TokenPayload(BaseModel):
    user_id: int
    role: UserRole


def decode_access_token(token: str, settings: Settings) -> Actor:
    """Validate a JWT issued by the identity service and return its actor."""
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        token_data = TokenPayload.model_validate(payload)
    except (JWTError, ValidationError):
        raise AuthenticationError("Invalid or expired token")
    return Actor(id=token_data.user_id, role=token_data.role)


def create_access_token(
    user_id: int,
    role: UserRole,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a token the way the identity service does (scripts and tests)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode = {"user_id": user_id, "role": UserRole(role).value, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
