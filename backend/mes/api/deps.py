"""Shared FastAPI dependencies: database session, caller identity, paging."""

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import get_db
from mes.core.exceptions import AuthenticationError, PermissionDeniedError
from mes.core.pagination import clamp_page
from mes.core.security import verify_access_token
from mes.models.user import User
from mes.repositories.base import Repository

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an enabled, non-deleted user."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    try:
        payload = verify_access_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (ValueError, KeyError) as e:
        raise AuthenticationError("Invalid or expired token") from e

    user = await Repository(db, User).get(user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("User not found or disabled")
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return current_user


class Pagination:
    """Query parameters ``page`` and ``page_size``, clamped to sane values."""

    def __init__(
        self,
        page: int = Query(1),
        page_size: int = Query(10),
    ):
        self.page, self.page_size = clamp_page(page, page_size)
