from datetime import datetime, timedelta

import pytest

from mes.core.exceptions import ConflictError, NotFoundError, ValidationError
from mes.services.equipment_service import EquipmentService


@pytest.fixture
async def machine(test_session):
    return await EquipmentService(test_session).create_equipment(
        code="EQ-01", name="CNC Lathe", type="lathe", location="Hall A"
    )


@pytest.mark.asyncio
async def test_create_defaults_to_running(machine):
    assert machine.status == "running"


@pytest.mark.asyncio
async def test_duplicate_code(test_session, machine):
    with pytest.raises(ConflictError):
        await EquipmentService(test_session).create_equipment(code="EQ-01", name="Other")


@pytest.mark.asyncio
async def test_invalid_status(test_session, machine):
    service = EquipmentService(test_session)
    with pytest.raises(ValidationError):
        await service.create_equipment(code="EQ-02", name="Press", status="broken")
    with pytest.raises(ValidationError):
        await service.update_equipment(machine.id, status="broken")


@pytest.mark.asyncio
async def test_list_keyword_matches_location(test_session, machine):
    service = EquipmentService(test_session)
    await service.create_equipment(code="EQ-02", name="Press", location="Hall B")
    items, total = await service.list_equipment(keyword="Hall A")
    assert total == 1
    assert items[0].id == machine.id


@pytest.mark.asyncio
async def test_maintenance_lifecycle(test_session, machine, admin_user):
    service = EquipmentService(test_session)
    start = datetime(2024, 3, 1, 8, 0)
    record = await service.create_maintenance(
        equipment_id=machine.id,
        maintainer_id=admin_user.id,
        type="preventive",
        description="Oil change",
        start_time=start,
        end_time=start + timedelta(minutes=90),
        cost=150,
    )
    assert record.duration == 90
    assert record.equipment.code == "EQ-01"

    machine_id, record_id, maintainer_id = machine.id, record.id, admin_user.id
    with pytest.raises(ConflictError):
        await service.delete_equipment(machine_id)

    updated = await service.update_maintenance(record_id, result="ok")
    assert updated.result == "ok"

    items, total = await service.list_maintenance(equipment_id=machine_id, maintainer_id=maintainer_id)
    assert total == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"type": "cosmetic"},
        {"cost": -1},
        {"end_time": datetime(2024, 2, 28)},
        {"description": ""},
    ],
)
async def test_maintenance_validation(test_session, machine, admin_user, overrides):
    data = dict(
        equipment_id=machine.id,
        maintainer_id=admin_user.id,
        type="corrective",
        description="Replace belt",
        start_time=datetime(2024, 3, 1),
    )
    data.update(overrides)
    with pytest.raises(ValidationError):
        await EquipmentService(test_session).create_maintenance(**data)


@pytest.mark.asyncio
async def test_maintenance_unknown_equipment(test_session, admin_user):
    with pytest.raises(NotFoundError):
        await EquipmentService(test_session).create_maintenance(
            equipment_id=5, maintainer_id=admin_user.id, type="emergency",
            description="Fire", start_time=datetime(2024, 3, 1),
        )


@pytest.mark.asyncio
async def test_upcoming_maintenance(test_session, machine, admin_user):
    service = EquipmentService(test_session)
    now = datetime(2024, 6, 1, 12, 0)
    for days in (3, 20):
        await service.create_maintenance(
            equipment_id=machine.id,
            maintainer_id=admin_user.id,
            type="preventive",
            description=f"Check in {days} days",
            start_time=now - timedelta(days=30),
            next_maintenance=now + timedelta(days=days),
        )
    upcoming = await service.upcoming_maintenance(days=7, now=now)
    assert [r.description for r in upcoming] == ["Check in 3 days"]


@pytest.mark.asyncio
async def test_statistics_and_lookups(test_session, machine):
    service = EquipmentService(test_session)
    await service.create_equipment(code="EQ-02", name="Press", type="press", status="fault")
    await service.create_equipment(code="EQ-03", name="Drill", type="drill", status="maintenance")
    await service.create_equipment(code="EQ-04", name="Mill", type="lathe")

    stats = await service.statistics()
    assert stats["total_equipment"] == 4
    assert stats["running_rate"] == pytest.approx(50.0)
    assert stats["fault_rate"] == pytest.approx(25.0)
    assert stats["maintenance_rate"] == pytest.approx(25.0)
    assert stats["maintenance_count"] == 0

    assert await service.equipment_types() == ["drill", "lathe", "press"]
    assert service.equipment_statuses() == ["running", "stopped", "maintenance", "fault"]
    assert service.maintenance_types() == ["preventive", "corrective", "emergency"]
