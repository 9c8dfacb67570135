from mes.services.equipment_service import EquipmentService
from mes.services.material_service import MaterialService
from mes.services.product_service import ProductService
from mes.services.production_service import ProductionService
from mes.services.quality_service import QualityService
from mes.services.user_service import UserService

__all__ = [
    "EquipmentService",
    "MaterialService",
    "ProductService",
    "ProductionService",
    "QualityService",
    "UserService",
]
