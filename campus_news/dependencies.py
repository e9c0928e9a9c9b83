"""
FastAPI dependency injection for authentication

Routes receive a typed ``Principal``; anonymous callers get
``Principal.anonymous()`` from the optional variants.
"""

import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from typing import Optional

from campus_news.utils.security import verify_access_token
from campus_news.services.firebase_service import firebase_service
from campus_news.models.user import Principal, User, UserRole

logger = logging.getLogger(__name__)

# Bearer scheme; a missing header is answered with 401 by the dependencies
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_uid(token: str) -> Optional[str]:
    """
    Resolve a bearer token to a user id.

    Firebase ID tokens are tried first, then internal access tokens.
    """
    try:
        decoded_token = firebase_service.verify_id_token(token)
        if decoded_token.get("uid"):
            return decoded_token["uid"]
        logger.debug("Firebase ID token decoded but missing UID")
    except ValueError as e:
        logger.debug(f"{e}. Trying internal token next.")

    try:
        payload = verify_access_token(token)
    except JWTError as e:
        logger.debug(f"Internal token verification failed: {e}")
        return None
    return payload.get("sub")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> User:
    """
    Dependency to get the current authenticated user

    Raises:
        HTTPException: If token is invalid or user not found or inactive
    """
    if not credentials or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    token = credentials.credentials

    user_id = _token_uid(token)
    if not user_id:
        raise _unauthorized()

    user = await firebase_service.get_user_by_uid(user_id)
    if user is None:
        logger.warning(f"Authenticated user {user_id} not found in Firestore")
        raise _unauthorized("Authenticated user not found.")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[User]:
    """Like ``get_current_user`` but returns None instead of raising"""
    if not credentials or not credentials.credentials:
        return None

    user_id = _token_uid(credentials.credentials)
    if not user_id:
        return None
    user = await firebase_service.get_user_by_uid(user_id)
    if user is None or not user.is_active:
        return None
    return user


async def get_principal(current_user: User = Depends(get_current_user)) -> Principal:
    return Principal.from_user(current_user)


async def get_optional_principal(
    current_user: Optional[User] = Depends(get_optional_user),
) -> Principal:
    if current_user is None:
        return Principal.anonymous()
    return Principal.from_user(current_user)


def require_roles(*roles: UserRole):
    """
    Dependency factory to require one of multiple roles

    Args:
        roles: Tuple of acceptable roles

    Returns:
        Dependency function
    """

    async def roles_checker(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in roles:
            roles_str = ", ".join([role.value for role in roles])
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required roles: {roles_str}",
            )
        return principal

    return roles_checker


require_editor = require_roles(UserRole.EDITOR, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)
