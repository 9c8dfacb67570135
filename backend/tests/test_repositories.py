"""Tests for the generic repository and its soft-delete filtering."""

import pytest

from mes.models.product import Product
from mes.repositories.base import Repository
from mes.repositories.material_repository import MaterialRepository


class TestRepository:
    """Test Repository."""

    @pytest.fixture
    async def products(self, test_session):
        repo = Repository(test_session, Product)
        for i in range(3):
            await repo.add(Product(code=f"P{i}", name=f"Product {i}"))
        await test_session.commit()
        return repo

    @pytest.mark.asyncio
    async def test_add_and_get(self, products):
        product = await products.find_one(Product.code == "P1")
        assert product is not None
        assert (await products.get(product.id)).name == "Product 1"

    @pytest.mark.asyncio
    async def test_soft_delete_hides_row(self, test_session, products):
        product = await products.find_one(Product.code == "P0")
        await products.soft_delete(product)
        await test_session.commit()

        assert product.is_deleted
        assert await products.get(product.id) is None
        assert await products.count() == 2
        assert not await products.exists(Product.code == "P0")
        assert [p.code for p in await products.list(order_by=(Product.code,))] == ["P1", "P2"]

    @pytest.mark.asyncio
    async def test_include_deleted(self, test_session, products):
        product = await products.find_one(Product.code == "P0")
        await products.soft_delete(product)
        await test_session.commit()

        assert await products.exists(Product.code == "P0", include_deleted=True)
        assert await products.get(product.id, include_deleted=True) is not None

    @pytest.mark.asyncio
    async def test_paginate(self, products):
        items, total = await products.paginate(page=2, page_size=2, order_by=(Product.code,))
        assert total == 3
        assert [p.code for p in items] == ["P2"]

    @pytest.mark.asyncio
    async def test_distinct_values_skip_empty(self, test_session, products):
        await products.add(Product(code="P9", name="Product 9", unit="pcs"))
        await products.add(Product(code="P10", name="Product 10", unit=""))
        await products.add(Product(code="P11", name="Product 11", unit="kg"))
        await test_session.commit()
        assert await products.distinct_values(Product.unit) == ["kg", "pcs"]


class TestMaterialRepository:

    @pytest.mark.asyncio
    async def test_adjust_stock_guard(self, test_session, material):
        repo = MaterialRepository(test_session)
        assert await repo.adjust_stock(material.id, 5)
        assert not await repo.adjust_stock(material.id, -6)
        assert await repo.adjust_stock(material.id, -5)
        await test_session.commit()

        await test_session.refresh(material)
        assert material.current_stock == 0

    @pytest.mark.asyncio
    async def test_adjust_stock_ignores_deleted(self, test_session, material):
        repo = MaterialRepository(test_session)
        await repo.soft_delete(material)
        assert not await repo.adjust_stock(material.id, 5)
