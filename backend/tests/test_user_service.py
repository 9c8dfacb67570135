"""Tests for registration, authentication and user administration."""

import pytest

from mes.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from mes.core.security import verify_access_token
from mes.services.production_service import ProductionService
from mes.services.user_service import UserService


@pytest.fixture
async def alice(test_session):
    return await UserService(test_session).register(
        username="alice", password="secret1", email="alice@example.com", real_name="Alice"
    )


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_defaults(self, alice):
        assert alice.role == "user"
        assert alice.status == 1
        assert alice.password_hash != "secret1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "username,password",
        [("ab", "secret1"), ("x" * 51, "secret1"), ("bob", "12345")],
    )
    async def test_invalid_input(self, test_session, username, password):
        with pytest.raises(ValidationError):
            await UserService(test_session).register(username=username, password=password)

    @pytest.mark.asyncio
    async def test_duplicate_username_and_email(self, test_session, alice):
        service = UserService(test_session)
        with pytest.raises(ConflictError):
            await service.register(username="alice", password="secret1")
        with pytest.raises(ConflictError):
            await service.register(username="alice2", password="secret1", email="alice@example.com")

    @pytest.mark.asyncio
    async def test_unknown_role(self, test_session):
        with pytest.raises(ValidationError):
            await UserService(test_session).register(username="carol", password="secret1", role="root")


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_login_issues_token(self, test_session, alice):
        user, token = await UserService(test_session).authenticate("alice", "secret1")
        payload = verify_access_token(token)
        assert user.id == alice.id
        assert payload["sub"] == str(alice.id)
        assert payload["role"] == "user"

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_session, alice):
        with pytest.raises(AuthenticationError):
            await UserService(test_session).authenticate("alice", "nope")

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_session):
        with pytest.raises(AuthenticationError):
            await UserService(test_session).authenticate("ghost", "secret1")

    @pytest.mark.asyncio
    async def test_disabled_user(self, test_session, alice):
        service = UserService(test_session)
        await service.update_user(alice.id, status=0)
        with pytest.raises(AuthenticationError):
            await service.authenticate("alice", "secret1")

    @pytest.mark.asyncio
    async def test_refresh_rejects_garbage(self, test_session):
        with pytest.raises(AuthenticationError):
            await UserService(test_session).refresh_token("not-a-token")


class TestProfile:

    @pytest.mark.asyncio
    async def test_update_profile(self, test_session, alice):
        user = await UserService(test_session).update_profile(alice.id, real_name="Alice B", phone="555")
        assert user.real_name == "Alice B"
        assert user.phone == "555"

    @pytest.mark.asyncio
    async def test_profile_email_conflict(self, test_session, alice, admin_user):
        with pytest.raises(ConflictError):
            await UserService(test_session).update_profile(alice.id, email="admin@example.com")

    @pytest.mark.asyncio
    async def test_change_password(self, test_session, alice):
        service = UserService(test_session)
        alice_id = alice.id
        with pytest.raises(ValidationError):
            await service.change_password(alice_id, "wrong", "newsecret")
        await service.change_password(alice_id, "secret1", "newsecret")
        user, _ = await service.authenticate("alice", "newsecret")
        assert user.id == alice_id


class TestAdministration:

    @pytest.mark.asyncio
    async def test_list_keyword(self, test_session, alice, admin_user):
        items, total = await UserService(test_session).list_users(keyword="Alice")
        assert total == 1
        assert items[0].username == "alice"

    @pytest.mark.asyncio
    async def test_update_role_and_status(self, test_session, alice):
        service = UserService(test_session)
        user = await service.update_user(alice.id, role="admin")
        assert user.is_admin
        with pytest.raises(ValidationError):
            await service.update_user(alice.id, status=2)

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, test_session, admin_user):
        with pytest.raises(PermissionDeniedError):
            await UserService(test_session).delete_user(admin_user.id, acting_user_id=admin_user.id)

    @pytest.mark.asyncio
    async def test_delete_blocked_by_orders(self, test_session, alice, admin_user, product):
        await ProductionService(test_session).create_order(product.id, 5, created_by=alice.id)
        with pytest.raises(ConflictError):
            await UserService(test_session).delete_user(alice.id, acting_user_id=admin_user.id)

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, test_session, alice, admin_user):
        service = UserService(test_session)
        await service.delete_user(alice.id, acting_user_id=admin_user.id)
        with pytest.raises(NotFoundError):
            await service.get_user(alice.id)
        with pytest.raises(ConflictError):
            await service.register(username="alice", password="secret1")
