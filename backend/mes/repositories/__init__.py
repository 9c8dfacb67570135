"""Repository layer for database operations.

All repositories share the soft-deletion filter defined in
``mes.repositories.base.Repository``.
"""

from mes.repositories.base import Repository
from mes.repositories.material_repository import (
    MaterialRepository,
    MaterialTransactionRepository,
)
from mes.repositories.production_repository import (
    DocumentSequenceRepository,
    ProductionOrderRepository,
)

__all__ = [
    "Repository",
    "MaterialRepository",
    "MaterialTransactionRepository",
    "DocumentSequenceRepository",
    "ProductionOrderRepository",
]
