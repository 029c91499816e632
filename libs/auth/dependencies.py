from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings

settings = get_settings()
security = HTTPBearer(auto_error=False)


def decode_token(token: str) -> AuthUser:
    """Decode an HS256 token issued by the storefront login flow."""
    payload = jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"verify_aud": False},
    )
    return AuthUser(**payload)


async def get_optional_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[AuthUser]:
    """
    Return the authenticated user, or None for guest requests.

    A token that is present but invalid is still rejected.
    """
    if token is None:
        return None
    try:
        return decode_token(token.credentials)
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sesi tidak valid, silakan login kembali",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    user: Annotated[Optional[AuthUser], Depends(get_optional_user)],
) -> AuthUser:
    """
    Require an authenticated user.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
) -> AuthUser:
    """
    Ensure the user carries the 'admin' (or 'service_role') role claim.
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
