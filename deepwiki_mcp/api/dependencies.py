"""FastAPI dependencies for authentication and authorization"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deepwiki_mcp.core.database import get_db
from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.core.security import decode_access_token, extract_user_id
from deepwiki_mcp.models import UserModel

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> UserModel:
    """
    Dependency to get current authenticated user from JWT token.

    Raises:
        HTTPException 401: If the token is missing, invalid or expired, or the
            user does not exist or is inactive
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"}
    )

    if credentials is None:
        raise unauthorized

    user_id = extract_user_id(decode_access_token(credentials.credentials))
    if user_id is None:
        logger.warning("token_verification_failed", path=request.url.path)
        raise unauthorized

    result = await db.execute(
        select(UserModel).where(
            UserModel.id == user_id,
            UserModel.is_deleted.is_(False),
        )
    )
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        logger.warning("user_not_found_or_inactive", user_id=user_id)
        raise unauthorized

    request.state.user_id = user.id
    return user


async def require_admin(current_user: UserModel = Depends(get_current_user)) -> UserModel:
    """
    Dependency restricting an endpoint to admins.

    Raises:
        HTTPException 403: If the user is not an admin
    """
    if not current_user.is_admin:
        logger.warning("admin_access_denied", user_id=current_user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return current_user
