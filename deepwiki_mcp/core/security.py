"""JWT helpers for bearer-token authentication"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import uuid
from jose import JWTError, jwt
from deepwiki_mcp.core.config import settings


def create_access_token(
    user_id: str,
    name: str,
    role: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token with user claims.

    Tokens are normally issued by the identity provider; this helper exists
    for tooling and tests that need a token signed with the shared secret.

    Args:
        user_id: User's unique identifier
        name: User's display name
        role: User's role ("admin" or "user")
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {
        "sub": str(user_id),  # Subject (standard JWT claim)
        "user_id": str(user_id),
        "name": name,
        "role": role,
        "exp": expire,  # Expiration time (standard JWT claim)
        "iat": datetime.utcnow(),  # Issued at (standard JWT claim)
        "jti": str(uuid.uuid4())  # JWT ID for tracking
    }

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Signature and expiry are both checked by python-jose.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid, None otherwise
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None


def extract_user_id(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the user id claim of a decoded token (``user_id`` first, then ``sub``)"""
    if not payload:
        return None
    user_id = payload.get("user_id") or payload.get("sub")
    return str(user_id) if user_id else None


def get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header value"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
