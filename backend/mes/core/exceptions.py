"""Error kinds raised by the service layer.

Every service operation either returns a value or raises one of the
classes below. The HTTP layer turns them into responses with a single
exception handler, so services never build HTTP errors themselves.
"""


class MESError(Exception):
    """Base class for all business errors."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class ValidationError(MESError):
    """Malformed or out-of-range input."""

    status_code = 400
    code = "validation_error"


class NotFoundError(MESError):
    """Referenced entity does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {entity_id} not found"
        super().__init__(message)


class ConflictError(MESError):
    """Uniqueness violation or blocked by dependent records."""

    status_code = 409
    code = "conflict"


class InsufficientStockError(MESError):
    """Stock-out would drive current stock below zero."""

    status_code = 409
    code = "insufficient_stock"

    def __init__(self, material_code: str, requested: int, available: int):
        self.material_code = material_code
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for material {material_code}: "
            f"requested {requested}, available {available}"
        )


class InvalidTransitionError(MESError):
    """Production order status transition is not allowed."""

    status_code = 409
    code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot change status from {from_status} to {to_status}")


class OrderLockedError(MESError):
    """Completed or cancelled orders cannot be modified."""

    status_code = 409
    code = "order_locked"


class OverProductionError(MESError):
    """Produced quantity would exceed the planned quantity."""

    status_code = 400
    code = "over_production"


class OrderInProgressError(MESError):
    """Orders in processing cannot be deleted."""

    status_code = 409
    code = "order_in_progress"


class PersistenceError(MESError):
    """The database failed to complete the operation."""

    status_code = 500
    code = "persistence_error"


class AuthenticationError(MESError):
    """Invalid credentials or token."""

    status_code = 401
    code = "authentication_failed"


class PermissionDeniedError(MESError):
    """The caller is not allowed to perform this operation."""

    status_code = 403
    code = "permission_denied"
