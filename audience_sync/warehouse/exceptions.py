class WarehouseError(Exception):
    """Raised when the warehouse query cannot be executed."""
