"""Tests for quality standards, inspections and statistics."""

import re
from datetime import datetime, timedelta

import pytest

from mes.core.exceptions import ConflictError, NotFoundError, ValidationError
from mes.services.quality_service import QualityService


@pytest.fixture
async def standard(test_session, product):
    return await QualityService(test_session).create_standard(
        product_id=product.id,
        name="Diameter",
        type="dimension",
        min_value=9.9,
        max_value=10.1,
        target_value=10.0,
        unit="mm",
    )


class TestStandards:

    @pytest.mark.asyncio
    async def test_create(self, standard, product):
        assert standard.product.code == product.code
        assert standard.is_active is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "min_value,max_value,target_value",
        [(10, 10, 10), (10, 5, 7), (1, 5, 5), (1, 5, 0.5)],
    )
    async def test_value_range_validated(self, test_session, product, min_value, max_value, target_value):
        with pytest.raises(ValidationError):
            await QualityService(test_session).create_standard(
                product.id, "Weight", "physical", min_value, max_value, target_value
            )

    @pytest.mark.asyncio
    async def test_unknown_product(self, test_session):
        with pytest.raises(NotFoundError):
            await QualityService(test_session).create_standard(77, "Weight", "physical", 1, 3, 2)

    @pytest.mark.asyncio
    async def test_name_unique_per_product(self, test_session, standard, product):
        service = QualityService(test_session)
        with pytest.raises(ConflictError):
            await service.create_standard(product.id, "Diameter", "dimension", 1, 3, 2)

    @pytest.mark.asyncio
    async def test_update_revalidates(self, test_session, standard):
        service = QualityService(test_session)
        standard_id = standard.id
        with pytest.raises(ValidationError):
            await service.update_standard(standard_id, target_value=11)
        updated = await service.update_standard(standard_id, max_value=11, target_value=10.5)
        assert updated.target_value == 10.5

    @pytest.mark.asyncio
    async def test_list_and_types(self, test_session, standard, product):
        service = QualityService(test_session)
        await service.create_standard(product.id, "Hardness", "material", 50, 70, 60, is_active=False)

        items, total = await service.list_standards(product_id=product.id, is_active=True)
        assert total == 1
        assert items[0].id == standard.id
        assert await service.standard_types() == ["dimension", "material"]

    @pytest.mark.asyncio
    async def test_delete_blocked_by_inspection(self, test_session, standard, order, admin_user):
        service = QualityService(test_session)
        await service.create_inspection(order.id, standard.id, admin_user.id, 10.0, "pass")
        with pytest.raises(ConflictError):
            await service.delete_standard(standard.id)


class TestInspections:

    @pytest.mark.asyncio
    async def test_create_assigns_number(self, test_session, standard, order, admin_user):
        service = QualityService(test_session)
        first = await service.create_inspection(order.id, standard.id, admin_user.id, 10.0, "pass")
        second = await service.create_inspection(order.id, standard.id, admin_user.id, 10.3, "fail")

        today = datetime.utcnow().strftime("%Y%m%d")
        assert re.fullmatch(rf"QC{today}\d{{4}}", first.inspection_no)
        assert first.inspection_no != second.inspection_no
        assert first.inspector.username == "admin"
        assert first.inspection_time is not None

    @pytest.mark.asyncio
    async def test_invalid_result(self, test_session, standard, order, admin_user):
        with pytest.raises(ValidationError):
            await QualityService(test_session).create_inspection(
                order.id, standard.id, admin_user.id, 10.0, "maybe"
            )

    @pytest.mark.asyncio
    async def test_missing_references(self, test_session, standard, order, admin_user):
        service = QualityService(test_session)
        order_id, standard_id, inspector_id = order.id, standard.id, admin_user.id
        with pytest.raises(NotFoundError):
            await service.create_inspection(999, standard_id, inspector_id, 10.0, "pass")
        with pytest.raises(NotFoundError):
            await service.create_inspection(order_id, 999, inspector_id, 10.0, "pass")
        with pytest.raises(NotFoundError):
            await service.create_inspection(order_id, standard_id, 999, 10.0, "pass")

    @pytest.mark.asyncio
    async def test_list_newest_first_and_filter(self, test_session, standard, order, admin_user):
        service = QualityService(test_session)
        now = datetime.utcnow()
        older = await service.create_inspection(
            order.id, standard.id, admin_user.id, 10.0, "pass", inspection_time=now - timedelta(hours=2)
        )
        newer = await service.create_inspection(
            order.id, standard.id, admin_user.id, 10.4, "fail", inspection_time=now
        )

        items, total = await service.list_inspections(production_order_id=order.id)
        assert total == 2
        assert [i.id for i in items] == [newer.id, older.id]

        items, total = await service.list_inspections(result="fail")
        assert [i.id for i in items] == [newer.id]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, test_session, standard, order, admin_user):
        service = QualityService(test_session)
        inspection = await service.create_inspection(order.id, standard.id, admin_user.id, 10.0, "pass")

        updated = await service.update_inspection(inspection.id, result="fail", remark="recheck")
        assert updated.result == "fail"
        assert updated.remark == "recheck"

        await service.delete_inspection(inspection.id)
        with pytest.raises(NotFoundError):
            await service.get_inspection(inspection.id)


class TestStatistics:

    @pytest.mark.asyncio
    async def test_rates(self, test_session, standard, order, admin_user):
        service = QualityService(test_session)
        for result in ("pass", "pass", "pass", "fail"):
            await service.create_inspection(order.id, standard.id, admin_user.id, 10.0, result)

        stats = await service.statistics(production_order_id=order.id)
        assert stats["total_inspections"] == 4
        assert stats["passed_count"] == 3
        assert stats["failed_count"] == 1
        assert stats["pass_rate"] == pytest.approx(75.0)
        assert stats["fail_rate"] == pytest.approx(25.0)

    @pytest.mark.asyncio
    async def test_empty(self, test_session):
        stats = await QualityService(test_session).statistics()
        assert stats["total_inspections"] == 0
        assert stats["pass_rate"] == 0.0
        assert stats["fail_rate"] == 0.0

    @pytest.mark.asyncio
    async def test_date_window(self, test_session, standard, order, admin_user):
        service = QualityService(test_session)
        now = datetime.utcnow()
        await service.create_inspection(
            order.id, standard.id, admin_user.id, 10.0, "pass", inspection_time=now - timedelta(days=10)
        )
        await service.create_inspection(order.id, standard.id, admin_user.id, 10.0, "fail", inspection_time=now)

        stats = await service.statistics(start_date=now - timedelta(days=1))
        assert stats["total_inspections"] == 1
        assert stats["failed_count"] == 1
