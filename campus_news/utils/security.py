"""
Verification of internal access tokens

Tokens are minted by the campus account service with the shared
``JWT_SECRET_KEY``; this backend only checks the signature, expiry and
``type`` claim and reads the user id from ``sub``.
"""

from typing import Dict, Any
from jose import JWTError, jwt
from campus_news.config import settings


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT token

    Raises:
        JWTError: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise JWTError(f"Invalid token: {str(e)}")


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verify an access token

    Raises:
        JWTError: If token is invalid, expired, or not an access token
    """
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise JWTError("Invalid token type")

    return payload
