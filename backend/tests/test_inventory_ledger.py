"""Tests for the inventory ledger: stock movements, atomicity and concurrency."""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mes.core.database import Base
from mes.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from mes.models.material import Material, MaterialTransaction
from mes.services.material_service import MaterialService


async def ledger_count(session, material_id):
    result = await session.execute(
        select(func.count()).select_from(MaterialTransaction).where(MaterialTransaction.material_id == material_id)
    )
    return result.scalar()


class TestMaterialMasterData:

    @pytest.mark.asyncio
    async def test_create_material_starts_empty(self, test_session):
        material = await MaterialService(test_session).create_material(
            code="M1", name="Bolt", min_stock=5, max_stock=50
        )
        assert material.id is not None
        assert material.current_stock == 0
        assert material.status == 1

    @pytest.mark.asyncio
    async def test_stock_bounds_validated(self, test_session):
        with pytest.raises(ValidationError):
            await MaterialService(test_session).create_material(
                code="M1", name="Bolt", min_stock=50, max_stock=50
            )

    @pytest.mark.asyncio
    async def test_duplicate_code_rejected(self, test_session, material):
        with pytest.raises(ConflictError):
            await MaterialService(test_session).create_material(
                code=material.code, name="Other", min_stock=0, max_stock=10
            )

    @pytest.mark.asyncio
    async def test_update_cannot_touch_stock(self, test_session, material):
        with pytest.raises(ValidationError):
            await MaterialService(test_session).update_material(material.id, current_stock=999)

    @pytest.mark.asyncio
    async def test_update_revalidates_bounds(self, test_session, material):
        service = MaterialService(test_session)
        material_id = material.id
        with pytest.raises(ValidationError):
            await service.update_material(material_id, min_stock=600)
        updated = await service.update_material(material_id, name="Steel Plate 2mm", max_stock=800)
        assert updated.name == "Steel Plate 2mm"
        assert updated.max_stock == 800

    @pytest.mark.asyncio
    async def test_delete_blocked_by_ledger(self, test_session, material):
        service = MaterialService(test_session)
        await service.record_transaction(material.id, "in", 5, price=1)
        with pytest.raises(ConflictError):
            await service.delete_material(material.id)

    @pytest.mark.asyncio
    async def test_delete_hides_material(self, test_session, material):
        service = MaterialService(test_session)
        await service.delete_material(material.id)
        with pytest.raises(NotFoundError):
            await service.get_material(material.id)
        items, total = await service.list_materials()
        assert total == 0

    @pytest.mark.asyncio
    async def test_material_types(self, test_session, material):
        service = MaterialService(test_session)
        await service.create_material(code="M2", name="Paint", type="auxiliary", min_stock=0, max_stock=10)
        await service.create_material(code="M3", name="Label", min_stock=0, max_stock=10)
        assert await service.material_types() == ["auxiliary", "raw"]


class TestRecordTransaction:

    @pytest.mark.asyncio
    async def test_stock_in_then_overdraw(self, test_session):
        service = MaterialService(test_session)
        material = await service.create_material(code="M1", name="Bolt", min_stock=5, max_stock=50)
        material_id = material.id

        entry = await service.record_transaction(material_id, "in", 20, price=2.5)
        assert entry.total_amount == 50.0
        assert entry.material.code == "M1"
        assert (await service.get_material(material_id)).current_stock == 20

        with pytest.raises(InsufficientStockError) as exc_info:
            await service.record_transaction(material_id, "out", 25)
        assert exc_info.value.requested == 25
        assert exc_info.value.available == 20

        assert (await service.get_material(material_id)).current_stock == 20
        assert await ledger_count(test_session, material_id) == 1

    @pytest.mark.asyncio
    async def test_stock_out_exact_amount(self, test_session, material):
        service = MaterialService(test_session)
        await service.record_transaction(material.id, "in", 30, price=1)
        await service.record_transaction(material.id, "out", 30)
        assert (await service.get_material(material.id)).current_stock == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("direction", ["", "IN", "transfer"])
    async def test_invalid_direction(self, test_session, material, direction):
        with pytest.raises(ValidationError):
            await MaterialService(test_session).record_transaction(material.id, direction, 1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -5])
    async def test_non_positive_quantity(self, test_session, material, quantity):
        with pytest.raises(ValidationError):
            await MaterialService(test_session).record_transaction(material.id, "in", quantity)

    @pytest.mark.asyncio
    async def test_unknown_material(self, test_session):
        with pytest.raises(NotFoundError):
            await MaterialService(test_session).record_transaction(9999, "in", 1)

    @pytest.mark.asyncio
    async def test_unknown_production_order(self, test_session, material):
        service = MaterialService(test_session)
        material_id = material.id
        with pytest.raises(NotFoundError):
            await service.record_transaction(material_id, "in", 1, production_order_id=4242)
        assert (await service.get_material(material_id)).current_stock == 0
        assert await ledger_count(test_session, material_id) == 0

    @pytest.mark.asyncio
    async def test_links_production_order_and_operator(self, test_session, material, order, admin_user):
        service = MaterialService(test_session)
        await service.record_transaction(material.id, "in", 10, price=1)
        entry = await service.record_transaction(
            material.id, "out", 4, production_order_id=order.id, operator_id=admin_user.id, remark="line 1"
        )
        assert entry.production_order_id == order.id
        assert entry.operator_id == admin_user.id

    @pytest.mark.asyncio
    async def test_ledger_derivability(self, test_session, material):
        service = MaterialService(test_session)
        moves = [("in", 50), ("out", 20), ("in", 7), ("out", 30), ("out", 7)]
        for direction, quantity in moves:
            await service.record_transaction(material.id, direction, quantity, price=1)

        current = (await service.get_material(material.id)).current_stock
        assert current == 0
        assert await service.stock_balance(material.id) == current

    @pytest.mark.asyncio
    async def test_list_transactions_newest_first(self, test_session, material):
        service = MaterialService(test_session)
        first = await service.record_transaction(material.id, "in", 10, price=1)
        second = await service.record_transaction(material.id, "out", 3)

        entries, total = await service.list_transactions(page=1, page_size=10, material_id=material.id)
        assert total == 2
        assert [e.id for e in entries] == [second.id, first.id]

        outs, total = await service.list_transactions(transaction_type="out")
        assert total == 1
        assert outs[0].type == "out"

    @pytest.mark.asyncio
    async def test_low_stock_report(self, test_session, material):
        service = MaterialService(test_session)
        other = await service.create_material(code="M9", name="Nut", min_stock=5, max_stock=100)
        await service.record_transaction(other.id, "in", 50, price=1)

        low = await service.low_stock_materials()
        assert [m.code for m in low] == [material.code]

        await service.record_transaction(material.id, "in", 10, price=1)
        low = await service.low_stock_materials()
        assert [m.code for m in low] == [material.code]

        await service.record_transaction(material.id, "in", 1, price=1)
        assert await service.low_stock_materials() == []


class TestConcurrentStockOut:
    """Concurrent stock-outs against one material, each in its own session."""

    @pytest.fixture
    async def file_engine(self, tmp_path):
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
            connect_args={"timeout": 30},
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield engine
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_only_one_full_stock_out_succeeds(self, file_engine):
        factory = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as session:
            service = MaterialService(session)
            material = await service.create_material(code="C1", name="Copper", min_stock=0, max_stock=100)
            await service.record_transaction(material.id, "in", 10, price=1)

        async def stock_out():
            async with factory() as session:
                return await MaterialService(session).record_transaction(material.id, "out", 10)

        results = await asyncio.gather(*(stock_out() for _ in range(5)), return_exceptions=True)

        succeeded = [r for r in results if isinstance(r, MaterialTransaction)]
        failed = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(succeeded) == 1
        assert len(failed) == 4

        async with factory() as session:
            refreshed = await session.get(Material, material.id)
            assert refreshed.current_stock == 0
            assert await ledger_count(session, material.id) == 2
            assert await MaterialService(session).stock_balance(material.id) == 0
