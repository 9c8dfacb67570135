# Database models
from mes.models.user import User
from mes.models.product import Product
from mes.models.production import ProductionOrder, OrderStatus, DocumentSequence
from mes.models.material import Material, MaterialTransaction, TransactionType
from mes.models.quality import QualityStandard, QualityInspection
from mes.models.equipment import Equipment, MaintenanceRecord, EquipmentStatus, MaintenanceType

__all__ = [
    "User",
    "Product",
    "ProductionOrder",
    "OrderStatus",
    "DocumentSequence",
    "Material",
    "MaterialTransaction",
    "TransactionType",
    "QualityStandard",
    "QualityInspection",
    "Equipment",
    "MaintenanceRecord",
    "EquipmentStatus",
    "MaintenanceType",
]
