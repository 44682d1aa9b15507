from core_backend.exceptions import ValidationError


class TableOccupiedError(ValidationError):
    """Raised when an order is seated at a table that already has a guest."""

    def __init__(self, table, message=None):
        self.table = table
        if message is None:
            message = f"Table '{table.name}' is already occupied"
        super().__init__(message, details={"table_id": table.id})
