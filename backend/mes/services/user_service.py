"""Accounts, authentication and administration of users."""

import logging

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import transactional
from mes.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from mes.core.pagination import clamp_page
from mes.core.security import create_user_token, hash_password, refresh_access_token, verify_password
from mes.models.equipment import MaintenanceRecord
from mes.models.material import MaterialTransaction
from mes.models.production import ProductionOrder
from mes.models.quality import QualityInspection
from mes.models.user import User
from mes.repositories.base import Repository

logger = logging.getLogger(__name__)

ROLES = ("admin", "user")
MIN_PASSWORD_LENGTH = 6


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = Repository(session, User)

    async def register(
        self,
        username: str,
        password: str,
        email: str | None = None,
        real_name: str | None = None,
        phone: str | None = None,
        role: str | None = None,
    ) -> User:
        """Create an enabled account.

        Usernames and emails stay reserved after an account is deleted.
        """
        if not username or not 3 <= len(username) <= 50:
            raise ValidationError("Username must be 3 to 50 characters long")
        self._validate_password(password)
        role = role or "user"
        self._validate_role(role)

        async with transactional(self.session):
            if await self.users.exists(User.username == username, include_deleted=True):
                raise ConflictError(f"Username '{username}' already exists")
            if email and await self.users.exists(User.email == email, include_deleted=True):
                raise ConflictError(f"Email '{email}' is already registered")
            user = await self.users.add(
                User(
                    username=username,
                    password_hash=hash_password(password),
                    email=email or None,
                    real_name=real_name,
                    phone=phone,
                    role=role,
                    status=1,
                )
            )
        logger.info(f"Registered user {username} (role={role})")
        return user

    async def authenticate(self, username: str, password: str) -> tuple[User, str]:
        """Check credentials and issue an access token.

        Raises:
            AuthenticationError: unknown user, wrong password or disabled account
        """
        user = await self.users.find_one(User.username == username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for '{username}'")
            raise AuthenticationError("Incorrect username or password")
        if not user.is_active:
            logger.warning(f"Login rejected for disabled user '{username}'")
            raise AuthenticationError("User account is disabled")
        return user, create_user_token(user.id, user.username, user.role)

    async def refresh_token(self, token: str) -> str:
        try:
            return refresh_access_token(token)
        except ValueError as e:
            raise AuthenticationError(str(e)) from e

    async def get_user(self, user_id: int) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def update_profile(
        self,
        user_id: int,
        email: str | None = None,
        real_name: str | None = None,
        phone: str | None = None,
    ) -> User:
        async with transactional(self.session):
            user = await self.get_user(user_id)
            if email and email != user.email:
                await self._ensure_email_free(email, user.id)
                user.email = email
            if real_name is not None:
                user.real_name = real_name
            if phone is not None:
                user.phone = phone
            await self.session.flush()
            await self.session.refresh(user)
        return user

    async def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        self._validate_password(new_password)
        async with transactional(self.session):
            user = await self.get_user(user_id)
            if not verify_password(old_password, user.password_hash):
                raise ValidationError("Current password is incorrect")
            user.password_hash = hash_password(new_password)
        logger.info(f"User {user.username} changed password")

    async def list_users(
        self,
        page: int = 1,
        page_size: int = 10,
        keyword: str | None = None,
        role: str | None = None,
        status: int | None = None,
    ) -> tuple[list[User], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if keyword:
            criteria.append(
                or_(
                    User.username.like(f"%{keyword}%"),
                    User.real_name.like(f"%{keyword}%"),
                    User.email.like(f"%{keyword}%"),
                )
            )
        if role:
            criteria.append(User.role == role)
        if status is not None:
            criteria.append(User.status == status)
        return await self.users.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(User.created_at.desc(), User.id.desc()),
        )

    async def update_user(
        self,
        user_id: int,
        email: str | None = None,
        real_name: str | None = None,
        phone: str | None = None,
        role: str | None = None,
        status: int | None = None,
    ) -> User:
        """Administrative update, including role and enabled flag."""
        if role is not None:
            self._validate_role(role)
        if status is not None and status not in (0, 1):
            raise ValidationError("Status must be 0 (disabled) or 1 (enabled)")

        async with transactional(self.session):
            user = await self.get_user(user_id)
            if email and email != user.email:
                await self._ensure_email_free(email, user.id)
                user.email = email
            if real_name is not None:
                user.real_name = real_name
            if phone is not None:
                user.phone = phone
            if role is not None:
                user.role = role
            if status is not None:
                user.status = status
            await self.session.flush()
            await self.session.refresh(user)
        logger.info(f"Updated user {user.username}: role={user.role}, status={user.status}")
        return user

    async def delete_user(self, user_id: int, acting_user_id: int) -> None:
        if user_id == acting_user_id:
            raise PermissionDeniedError("Cannot delete your own account")
        async with transactional(self.session):
            user = await self.get_user(user_id)
            if await self._has_dependents(user.id):
                raise ConflictError(f"User {user.username} has related records and cannot be deleted")
            await self.users.soft_delete(user)
        logger.info(f"Deleted user {user.username}")

    async def _has_dependents(self, user_id: int) -> bool:
        checks = (
            (ProductionOrder, ProductionOrder.created_by == user_id),
            (MaterialTransaction, MaterialTransaction.operator_id == user_id),
            (QualityInspection, QualityInspection.inspector_id == user_id),
            (MaintenanceRecord, MaintenanceRecord.maintainer_id == user_id),
        )
        for model, criterion in checks:
            if await Repository(self.session, model).exists(criterion, include_deleted=True):
                return True
        return False

    async def _ensure_email_free(self, email: str, user_id: int) -> None:
        if await self.users.exists(User.email == email, User.id != user_id, include_deleted=True):
            raise ConflictError(f"Email '{email}' is already registered")

    @staticmethod
    def _validate_password(password: str) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    @staticmethod
    def _validate_role(role: str) -> None:
        if role not in ROLES:
            raise ValidationError(f"Role must be one of {ROLES}")
