"""
FastAPI dependencies for authentication.
"""
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from travelplan.infrastructure.database import get_db
from travelplan.auth.models import UserModel
from travelplan.auth.jwt import verify_token, TokenExpiredError, TokenInvalidError


required_bearer = HTTPBearer(auto_error=True)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(required_bearer),
    db: AsyncSession = Depends(get_db),
) -> UserModel:
    """
    Get the current authenticated user. Raises 401 if not authenticated.

    Every trip query downstream is scoped by the returned user's id.
    """
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
        user_id = UUID(payload["sub"])
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except (TokenInvalidError, KeyError, ValueError) as e:
        raise _unauthorized(str(e) or "Invalid token")

    result = await db.execute(
        select(UserModel).where(UserModel.id == user_id)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    return user
