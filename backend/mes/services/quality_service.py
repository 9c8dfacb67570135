"""Quality standards and inspection records."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mes.core.database import transactional
from mes.core.exceptions import ConflictError, NotFoundError, ValidationError
from mes.core.pagination import clamp_page
from mes.models.product import Product
from mes.models.production import ProductionOrder
from mes.models.quality import QualityInspection, QualityStandard
from mes.models.user import User
from mes.repositories.base import Repository
from mes.services.production_service import generate_document_no

logger = logging.getLogger(__name__)

INSPECTION_RESULTS = ("pass", "fail")


class QualityService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.standards = Repository(session, QualityStandard)
        self.inspections = Repository(session, QualityInspection)
        self.products = Repository(session, Product)
        self.orders = Repository(session, ProductionOrder)
        self.users = Repository(session, User)

    # ------------------------------------------------------------------
    # Standards
    # ------------------------------------------------------------------

    async def create_standard(
        self,
        product_id: int,
        name: str,
        type: str,
        min_value: float,
        max_value: float,
        target_value: float,
        unit: str | None = None,
        description: str | None = None,
        is_active: bool = True,
    ) -> QualityStandard:
        self._validate_standard(name, type, min_value, max_value, target_value)
        async with transactional(self.session):
            product = await self._require(self.products, product_id, "Product")
            await self._ensure_name_free(product_id, name)
            standard = await self.standards.add(
                QualityStandard(
                    product_id=product_id,
                    product=product,
                    name=name,
                    type=type,
                    min_value=min_value,
                    max_value=max_value,
                    target_value=target_value,
                    unit=unit,
                    description=description,
                    is_active=is_active,
                )
            )
        logger.info(f"Created quality standard '{name}' for product {product.code}")
        return standard

    async def get_standard(self, standard_id: int) -> QualityStandard:
        return await self._require(self.standards, standard_id, "Quality standard")

    async def list_standards(
        self,
        page: int = 1,
        page_size: int = 10,
        product_id: int | None = None,
        standard_type: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[QualityStandard], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if product_id:
            criteria.append(QualityStandard.product_id == product_id)
        if standard_type:
            criteria.append(QualityStandard.type == standard_type)
        if is_active is not None:
            criteria.append(QualityStandard.is_active == is_active)
        return await self.standards.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(QualityStandard.created_at.desc(), QualityStandard.id.desc()),
        )

    async def update_standard(self, standard_id: int, **changes) -> QualityStandard:
        """Update a standard; value ranges and name uniqueness are re-checked."""
        async with transactional(self.session):
            standard = await self.get_standard(standard_id)
            fields = ("product_id", "name", "type", "min_value", "max_value", "target_value",
                      "unit", "description", "is_active")
            merged = {f: getattr(standard, f) for f in fields}
            merged.update({k: v for k, v in changes.items() if k in fields and v is not None})
            self._validate_standard(
                merged["name"], merged["type"], merged["min_value"], merged["max_value"], merged["target_value"]
            )

            if merged["product_id"] != standard.product_id:
                standard.product = await self._require(self.products, merged["product_id"], "Product")
            if (merged["product_id"], merged["name"]) != (standard.product_id, standard.name):
                await self._ensure_name_free(merged["product_id"], merged["name"], exclude_id=standard.id)

            for field, value in merged.items():
                setattr(standard, field, value)
            await self.session.flush()
            await self.session.refresh(standard)
        return standard

    async def delete_standard(self, standard_id: int) -> None:
        async with transactional(self.session):
            standard = await self.get_standard(standard_id)
            if await self.inspections.exists(QualityInspection.quality_standard_id == standard_id):
                raise ConflictError(
                    f"Quality standard '{standard.name}' has inspection records and cannot be deleted"
                )
            await self.standards.soft_delete(standard)
        logger.info(f"Deleted quality standard {standard_id}")

    async def standard_types(self) -> list[str]:
        return await self.standards.distinct_values(QualityStandard.type)

    # ------------------------------------------------------------------
    # Inspections
    # ------------------------------------------------------------------

    async def create_inspection(
        self,
        production_order_id: int,
        quality_standard_id: int,
        inspector_id: int,
        actual_value: float,
        result: str,
        remark: str | None = None,
        inspection_time: datetime | None = None,
    ) -> QualityInspection:
        self._validate_result(result)
        async with transactional(self.session):
            order = await self._require(self.orders, production_order_id, "Production order")
            standard = await self._require(self.standards, quality_standard_id, "Quality standard")
            inspector = await self._require(self.users, inspector_id, "Inspector")

            inspection = await self.inspections.add(
                QualityInspection(
                    inspection_no=await generate_document_no(self.session, "QC"),
                    production_order_id=order.id,
                    production_order=order,
                    quality_standard_id=standard.id,
                    quality_standard=standard,
                    inspector_id=inspector.id,
                    inspector=inspector,
                    actual_value=actual_value,
                    result=result,
                    remark=remark,
                    inspection_time=inspection_time or datetime.utcnow(),
                )
            )
        logger.info(f"Recorded inspection {inspection.inspection_no} ({result}) for order {order.order_no}")
        return inspection

    async def get_inspection(self, inspection_id: int) -> QualityInspection:
        return await self._require(self.inspections, inspection_id, "Quality inspection")

    async def list_inspections(
        self,
        page: int = 1,
        page_size: int = 10,
        production_order_id: int | None = None,
        quality_standard_id: int | None = None,
        inspector_id: int | None = None,
        result: str | None = None,
    ) -> tuple[list[QualityInspection], int]:
        page, page_size = clamp_page(page, page_size)
        criteria = []
        if production_order_id:
            criteria.append(QualityInspection.production_order_id == production_order_id)
        if quality_standard_id:
            criteria.append(QualityInspection.quality_standard_id == quality_standard_id)
        if inspector_id:
            criteria.append(QualityInspection.inspector_id == inspector_id)
        if result:
            criteria.append(QualityInspection.result == result)
        return await self.inspections.paginate(
            *criteria,
            page=page,
            page_size=page_size,
            order_by=(QualityInspection.inspection_time.desc(), QualityInspection.id.desc()),
        )

    async def update_inspection(self, inspection_id: int, **changes) -> QualityInspection:
        if changes.get("result") is not None:
            self._validate_result(changes["result"])
        async with transactional(self.session):
            inspection = await self.get_inspection(inspection_id)
            if changes.get("production_order_id") is not None:
                inspection.production_order = await self._require(
                    self.orders, changes["production_order_id"], "Production order"
                )
            if changes.get("quality_standard_id") is not None:
                inspection.quality_standard = await self._require(
                    self.standards, changes["quality_standard_id"], "Quality standard"
                )
            if changes.get("inspector_id") is not None:
                inspection.inspector = await self._require(self.users, changes["inspector_id"], "Inspector")
            for field in ("actual_value", "result", "remark", "inspection_time"):
                if changes.get(field) is not None:
                    setattr(inspection, field, changes[field])
            await self.session.flush()
            await self.session.refresh(inspection)
        return inspection

    async def delete_inspection(self, inspection_id: int) -> None:
        async with transactional(self.session):
            inspection = await self.get_inspection(inspection_id)
            await self.inspections.soft_delete(inspection)
        logger.info(f"Deleted inspection {inspection.inspection_no}")

    async def statistics(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        production_order_id: int | None = None,
        quality_standard_id: int | None = None,
    ) -> dict[str, Any]:
        """Pass/fail counts and rates (percent) over the filtered inspections."""
        criteria = [QualityInspection.deleted_at.is_(None)]
        if start_date is not None:
            criteria.append(QualityInspection.inspection_time >= start_date)
        if end_date is not None:
            criteria.append(QualityInspection.inspection_time <= end_date)
        if production_order_id:
            criteria.append(QualityInspection.production_order_id == production_order_id)
        if quality_standard_id:
            criteria.append(QualityInspection.quality_standard_id == quality_standard_id)

        total = await self.session.scalar(select(func.count()).select_from(QualityInspection).where(*criteria)) or 0
        passed = await self.session.scalar(
            select(func.count()).select_from(QualityInspection).where(*criteria, QualityInspection.result == "pass")
        ) or 0
        failed = total - passed

        pass_rate = fail_rate = 0.0
        if total > 0:
            pass_rate = passed / total * 100
            fail_rate = failed / total * 100

        return {
            "total_inspections": total,
            "passed_count": passed,
            "failed_count": failed,
            "pass_rate": pass_rate,
            "fail_rate": fail_rate,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_standard(name, type, min_value, max_value, target_value) -> None:
        if not name or not type:
            raise ValidationError("Standard name and type are required")
        if min_value >= max_value:
            raise ValidationError("min_value must be less than max_value")
        if not min_value < target_value < max_value:
            raise ValidationError("target_value must lie strictly between min_value and max_value")

    @staticmethod
    def _validate_result(result: str) -> None:
        if result not in INSPECTION_RESULTS:
            raise ValidationError(f"Inspection result must be one of {INSPECTION_RESULTS}")

    async def _ensure_name_free(self, product_id: int, name: str, exclude_id: int | None = None) -> None:
        criteria = [QualityStandard.product_id == product_id, QualityStandard.name == name]
        if exclude_id is not None:
            criteria.append(QualityStandard.id != exclude_id)
        if await self.standards.exists(*criteria, include_deleted=True):
            raise ConflictError(f"Product {product_id} already has a quality standard named '{name}'")

    @staticmethod
    async def _require(repo: Repository, entity_id: int, label: str):
        entity = await repo.get(entity_id)
        if entity is None:
            raise NotFoundError(label, entity_id)
        return entity
